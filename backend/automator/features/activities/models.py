"""
Processed activity model.

One row per Strava activity id. The same row is the queue entry while
the activity waits to be processed (date_processed unset) and the
processing outcome afterwards.
"""

from sqlalchemy import Column, String, DateTime, Integer, BigInteger, Boolean, Text, JSON

from automator.models.base import Base


class ProcessedActivity(Base):
    """
    Queued or processed Strava activity.

    Fields sport_type, name, date_start, utc_start_offset and
    new_records are only stored when the user is not in privacy mode.
    """

    __tablename__ = "processed_activities"

    id = Column(BigInteger, primary_key=True, autoincrement=False)  # Strava activity ID

    # Owner
    user_id = Column(String(64), nullable=False, index=True)
    user_display_name = Column(String(255), nullable=True)

    # Queue / lifecycle
    date_queued = Column(DateTime, nullable=True, index=True)
    date_processed = Column(DateTime, nullable=True, index=True)
    retry_count = Column(Integer, default=0, nullable=False)
    batch = Column(Boolean, default=False, nullable=False, index=True)

    # Outcome
    recipes = Column(JSON, nullable=True)  # recipe id -> summary
    updated_fields = Column(JSON, nullable=True)  # field -> applied value
    error = Column(Text, nullable=True)
    linkback = Column(Boolean, default=False, nullable=False)

    # Activity details (privacy gated)
    sport_type = Column(String(50), nullable=True)
    name = Column(String(255), nullable=True)
    date_start = Column(DateTime, nullable=True)
    utc_start_offset = Column(Integer, nullable=True)
    new_records = Column(JSON, nullable=True)

    def __repr__(self):
        state = "processed" if self.date_processed else "queued"
        return f"<ProcessedActivity {self.id} user={self.user_id} {state}>"

    @property
    def is_pending(self) -> bool:
        """Queued but not yet processed."""
        return self.date_processed is None

    def user_log(self) -> str:
        return f"User {self.user_id} {self.user_display_name}"
