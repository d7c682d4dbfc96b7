"""
FTP estimation formulas.

Pure functions, no I/O. Durations are in seconds, power in watts.
"""

import math
from typing import Optional

# Activities shorter than this are ignored completely
MIN_DURATION = 5 * 60

# Normalized power is only derived for activities of at least 20 minutes
MIN_NORMALIZED_DURATION = 20 * 60

HOUR = 3600

# 20 min efforts count as 94.5% of FTP, growing linearly to 100% at 1 hour
SHORT_DISCOUNT_PER_8_MIN = 0.011

# Each hour above the first adds 3%
LONG_UPLIFT_PER_HOUR = 0.03

# Weight of the current FTP when the best effort is below it
CURRENT_FTP_WEIGHT = 1.35
BEST_POWER_WEIGHT = 1.0

# Discount applied to best power intervals, by window length in seconds
INTERVAL_FACTORS: dict[int, float] = {
    300: 0.79,
    1200: 0.94,
    3600: 1.0,
}


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def normalize_power(watts: float, duration: int) -> Optional[float]:
    """
    Estimate FTP from an effort of the given duration.

    Efforts between 20 and 60 minutes are discounted linearly
    (94.5% at 20 minutes). Longer efforts compound a 3% uplift per
    extra full hour plus a fractional uplift for the partial hour.

    Args:
        watts: Average (or weighted) power of the effort
        duration: Effort duration

    Returns:
        Normalized power, or None for efforts shorter than 20 minutes
    """
    if duration < MIN_NORMALIZED_DURATION:
        return None

    if duration <= HOUR:
        perc = ((HOUR - duration) / 60 / 8) * SHORT_DISCOUNT_PER_8_MIN
        return round_half_up(watts * (1 - perc))

    extra_hours = math.floor(duration / HOUR) - 1
    fraction = 1 + LONG_UPLIFT_PER_HOUR * ((duration % HOUR) / HOUR)
    factor = (1 + LONG_UPLIFT_PER_HOUR) ** extra_hours * fraction
    return watts * factor


def blend_ftp(best: float, current: Optional[float]) -> float:
    """
    Combine the best recent effort with the current FTP.

    A best effort below the current FTP only pulls it down partially,
    using a weighted mean biased towards the current value.
    """
    if current and current > best:
        total = best * BEST_POWER_WEIGHT + current * CURRENT_FTP_WEIGHT
        return total / (BEST_POWER_WEIGHT + CURRENT_FTP_WEIGHT)
    return best


def apply_idle_loss(ftp: float, idle_weeks: int, loss_per_week: float) -> float:
    """
    Subtract the fitness lost while off the bike.

    The loss is a flat fraction of the given value per idle week,
    not compounded.
    """
    if idle_weeks <= 0:
        return ftp
    return ftp - ftp * (idle_weeks * loss_per_week)


def percent_changed(new: float, old: float) -> float:
    """Change relative to the midpoint of both values, in percent."""
    midpoint = (new + old) / 2
    if midpoint == 0:
        return 100.0
    return 100 * abs((new - old) / midpoint)
