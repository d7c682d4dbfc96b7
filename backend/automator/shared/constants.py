"""
Constants for Strava sport and workout types.

Single source of truth for the Strava naming conventions used by the
activity pipeline and the FTP estimator.
"""

from enum import Enum


class StravaSport(str, Enum):
    """
    Sport types from Strava API (subset relevant to processing).
    """
    RIDE = "Ride"
    GRAVEL_RIDE = "GravelRide"
    MOUNTAIN_BIKE_RIDE = "MountainBikeRide"
    VIRTUAL_RIDE = "VirtualRide"
    EBIKE_RIDE = "EBikeRide"
    RUN = "Run"
    TRAIL_RUN = "TrailRun"
    VIRTUAL_RUN = "VirtualRun"
    WALK = "Walk"
    HIKE = "Hike"


# Sports that count towards the FTP estimation (powered cycling)
CYCLING_SPORTS: set[str] = {
    StravaSport.RIDE.value,
    StravaSport.GRAVEL_RIDE.value,
    StravaSport.MOUNTAIN_BIKE_RIDE.value,
    StravaSport.VIRTUAL_RIDE.value,
}


class StravaRideType(int, Enum):
    """Strava workout_type values for rides."""
    DEFAULT = 10
    RACE = 11
    WORKOUT = 12


class StravaRunType(int, Enum):
    """Strava workout_type values for runs."""
    DEFAULT = 0
    RACE = 1
    LONG_RUN = 2
    WORKOUT = 3


RACE_WORKOUT_TYPES: set[int] = {StravaRideType.RACE.value, StravaRunType.RACE.value}


# Event names emitted on the shared EventBus
EVENT_ACTIVITY_PROCESSED = "activity.processed"
