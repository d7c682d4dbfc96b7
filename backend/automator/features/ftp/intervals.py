"""
Best power intervals.

Finds the highest average power over fixed windows (5, 20 and 60
minutes) of a per-second power stream.
"""

from dataclasses import dataclass
from itertools import accumulate
from typing import Optional, Sequence

from .formulas import round_half_up

# Minimum number of samples in a stream
MIN_SAMPLES = 60

# Samples must cover at least 80% of the moving time seconds
MIN_SAMPLE_DENSITY = 0.8

WINDOWS: dict[str, int] = {
    "power5min": 300,
    "power20min": 1200,
    "power60min": 3600,
}


@dataclass
class PowerIntervals:
    """Best average power per window, None when the stream is too short."""
    power5min: Optional[int] = None
    power20min: Optional[int] = None
    power60min: Optional[int] = None

    def as_dict(self) -> dict[str, int]:
        return {k: v for k, v in vars(self).items() if v is not None}


class InsufficientPowerData(ValueError):
    """Stream too short or too sparse for interval analysis."""
    pass


def best_window_sum(watts: Sequence[float], window: int) -> Optional[float]:
    """
    Maximum sum over any contiguous run of `window` samples.

    Uses prefix sums, so each window size costs a single pass.

    Returns:
        The best sum, or None if the stream is shorter than the window
    """
    if window <= 0 or len(watts) < window:
        return None

    prefix = [0.0, *accumulate(watts)]
    return max(prefix[i + window] - prefix[i] for i in range(len(watts) - window + 1))


def check_stream(watts: Sequence[float], moving_time: int, resolution: Optional[str] = None) -> None:
    """
    Validate that a stream has enough fidelity for interval analysis.

    Raises:
        InsufficientPowerData: if there are fewer than 60 samples, the
            resolution is low, or samples cover less than 80% of the
            moving time
    """
    if len(watts) < MIN_SAMPLES:
        raise InsufficientPowerData(f"Not enough data points ({len(watts)})")
    if resolution == "low" or len(watts) < (moving_time or 0) * MIN_SAMPLE_DENSITY:
        raise InsufficientPowerData(
            f"Resolution not good enough ({len(watts)} points for {moving_time}s)"
        )


def compute_power_intervals(
    watts: Sequence[float],
    moving_time: int,
    resolution: Optional[str] = None,
) -> PowerIntervals:
    """
    Best 5, 20 and 60 minute average power of a stream.

    Args:
        watts: Per-second power samples
        moving_time: Activity moving time in seconds
        resolution: Stream resolution reported by Strava

    Raises:
        InsufficientPowerData: see check_stream
    """
    check_stream(watts, moving_time, resolution)

    result = PowerIntervals()
    for key, window in WINDOWS.items():
        best = best_window_sum(watts, window)
        if best is not None:
            setattr(result, key, round_half_up(best / window))
    return result
