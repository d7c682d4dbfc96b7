"""
FTP estimation.

Estimates the athlete's functional threshold power from recent rides
and updates it on Strava when it changed enough.

Estimation Flow:
1. Fetch rides from the last `ftp_weeks` weeks (unless given)
2. Normalize each ride's power by duration (PRO: also best intervals)
3. Blend the best value with the current FTP
4. Subtract the loss for weeks spent off the bike
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from statistics import mean
from typing import Optional

from automator.config import Settings, settings
from automator.shared.constants import CYCLING_SPORTS
from automator.features.strava import Activity, StravaProvider
from automator.features.users import User, UserRegistry
from .formulas import (
    INTERVAL_FACTORS,
    MIN_DURATION,
    apply_idle_loss,
    blend_ftp,
    normalize_power,
    percent_changed,
    round_half_up,
)
from .intervals import WINDOWS, PowerIntervals, compute_power_intervals, InsufficientPowerData

logger = logging.getLogger(__name__)

# Minimum change (percent, relative to the midpoint) for a save
MIN_SAVE_CHANGE_PERCENT = 2

# Minimum change (fraction of the current FTP) for an automatic update
MIN_PROCESS_CHANGE = 0.01

# Activities shorter than this are not analyzed for power intervals
MIN_INTERVALS_MOVING_TIME = 60


class InvalidFtpError(ValueError):
    """FTP value must be a positive number."""
    pass


@dataclass
class FtpEstimate:
    """Result of an FTP estimation."""
    ftp_watts: int
    ftp_current_watts: int
    best_watts: int
    best_activity: Activity
    activity_count: int
    activity_watts_avg: int
    recently_updated: bool


class FtpEstimator:
    """
    FTP estimation engine.

    Usage:
        estimator = FtpEstimator(strava, users)
        estimate = await estimator.estimate(user)
        await estimator.process(user)
    """

    def __init__(
        self,
        strava: StravaProvider,
        users: UserRegistry,
        config: Settings = settings,
    ):
        self.strava = strava
        self.users = users
        self.config = config

    def recently_updated(self, user: User) -> bool:
        """Check if the FTP was updated within the cooldown window."""
        if not user.date_last_ftp_update:
            return False
        since = datetime.utcnow() - timedelta(hours=self.config.ftp_since_last_hours)
        return user.date_last_ftp_update >= since

    async def estimate(
        self,
        user: User,
        activities: Optional[list[Activity]] = None
    ) -> Optional[FtpEstimate]:
        """
        Estimate the user's FTP from the given (or recent) activities.

        Args:
            user: Athlete
            activities: Activities to use, defaults to the last ftp_weeks weeks

        Returns:
            FtpEstimate, or None if no activity had usable power data
        """
        if not activities:
            now = datetime.utcnow()
            after = now - timedelta(weeks=self.config.ftp_weeks)
            activities = await self.strava.list_activities(user, after=after, before=now)

        list_watts: list[float] = []
        max_watts: float = 0
        best_activity: Optional[Activity] = None
        last_activity_date: Optional[datetime] = None

        for activity in activities:
            end = activity.end
            if end and (last_activity_date is None or end > last_activity_date):
                last_activity_date = end

            # Only powered rides of at least 5 minutes
            if activity.type not in CYCLING_SPORTS:
                continue
            if not activity.has_power:
                continue
            duration = activity.duration
            if duration < MIN_DURATION:
                continue

            watts = max(activity.watts_weighted or 0, activity.watts_avg or 0)
            power = normalize_power(watts, duration)

            # PRO users also get the best 5 / 20 / 60 minute intervals
            if user.is_pro:
                intervals = await self.get_power_intervals(user, activity)
                if intervals:
                    power = self._best_interval_power(intervals, power, max_watts)

            if power is None or power <= 0:
                continue

            if power > max_watts:
                max_watts = power
                best_activity = activity

            list_watts.append(power)

        if not list_watts:
            logger.info(f"{user}: no activities with power to estimate FTP from")
            return None

        # Make sure we have the very latest athlete data
        try:
            athlete = await self.strava.get_athlete(user)
            user.profile.ftp = athlete.ftp
        except Exception as e:
            logger.warning(f"{user}: could not get latest athlete data, will use the current one: {e}")

        avg_watts = round_half_up(mean(list_watts))
        max_watts = round_half_up(max_watts)
        current_watts = user.profile.ftp or 0

        ftp_watts = blend_ftp(max_watts, current_watts)

        # Loss per week off the bike
        idle_weeks = (datetime.utcnow() - last_activity_date).days // 7 if last_activity_date else 0
        ftp_watts = apply_idle_loss(ftp_watts, idle_weeks, self.config.ftp_idle_loss_per_week)
        ftp_watts = round_half_up(ftp_watts)

        logger.info(
            f"{user}: estimated FTP from {len(activities)} activities: {ftp_watts}w, "
            f"current {current_watts}w, best {max_watts}w on activity {best_activity.id}"
        )

        return FtpEstimate(
            ftp_watts=ftp_watts,
            ftp_current_watts=current_watts,
            best_watts=max_watts,
            best_activity=best_activity,
            activity_count=len(list_watts),
            activity_watts_avg=avg_watts,
            recently_updated=self.recently_updated(user),
        )

    @staticmethod
    def _best_interval_power(
        intervals: PowerIntervals,
        power: Optional[float],
        max_watts: float,
    ) -> Optional[float]:
        """Highest discounted interval power above the current best, if any."""
        for key, window in WINDOWS.items():
            value = getattr(intervals, key)
            if value is None:
                continue
            discounted = round_half_up(value * INTERVAL_FACTORS[window])
            if discounted > max_watts and (power is None or discounted > power):
                power = discounted
        return power

    async def save(self, user: User, ftp: int, force: bool = False) -> bool:
        """
        Update the user's FTP on Strava.

        Limited to once per cooldown window, and only if the value
        changed by at least 2%, unless forced.

        Args:
            user: Athlete
            ftp: New FTP in watts
            force: Ignore the cooldown and minimum change checks

        Returns:
            True if the FTP was saved

        Raises:
            InvalidFtpError: if ftp is not positive
        """
        if ftp is None or ftp <= 0:
            raise InvalidFtpError("Invalid FTP, must be higher than 0")

        if not force:
            if self.recently_updated(user):
                logger.warning(f"{user}: FTP {ftp}, abort, FTP was already updated recently")
                return False

            changed = percent_changed(ftp, user.profile.ftp or 0)
            if changed < MIN_SAVE_CHANGE_PERCENT:
                logger.warning(f"{user}: only {changed:.2f}% changed, won't update FTP {ftp}")
                return False

        now = datetime.utcnow()
        await self.strava.update_athlete_ftp(user, ftp)
        await self.users.update(user.id, date_last_ftp_update=now)

        user.profile.ftp = ftp
        user.date_last_ftp_update = now
        logger.info(f"{user}: FTP updated to {ftp}")

        return True

    async def process(self, user: User) -> Optional[FtpEstimate]:
        """
        Estimate the FTP and save it if it changed by more than 1%.

        Errors are logged, never raised.
        """
        try:
            estimate = await self.estimate(user)
            if not estimate:
                return None

            threshold = estimate.ftp_current_watts * MIN_PROCESS_CHANGE
            changed = abs(estimate.ftp_watts - estimate.ftp_current_watts) > threshold
            if not estimate.recently_updated and changed:
                await self.save(user, estimate.ftp_watts)

            return estimate
        except Exception as e:
            logger.error(f"{user}: failed to process FTP: {e}")
            return None

    async def get_power_intervals(self, user: User, activity: Activity) -> Optional[PowerIntervals]:
        """
        Best power intervals of an activity.

        Returns:
            PowerIntervals, or None if the power data is missing or too sparse
        """
        if (activity.moving_time or 0) < MIN_INTERVALS_MOVING_TIME:
            logger.info(f"{user} activity {activity.id}: abort power intervals, activity is too short")
            return None

        try:
            stream = await self.strava.get_power_stream(user, activity.id)
            intervals = compute_power_intervals(stream.data, activity.moving_time, stream.resolution)
        except InsufficientPowerData as e:
            logger.info(f"{user} activity {activity.id}: abort power intervals, {e}")
            return None
        except Exception as e:
            logger.error(f"{user} activity {activity.id}: failed to get power intervals: {e}")
            return None

        logger.info(
            f"{user} activity {activity.id}: power intervals "
            + ", ".join(f"{k.replace('power', '')}: {v}" for k, v in intervals.as_dict().items())
        )
        return intervals
