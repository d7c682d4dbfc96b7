"""
FTP estimation module.

Usage:
    from automator.features.ftp import FtpEstimator

Components:
- FtpEstimator: estimation, save and automatic update
- compute_power_intervals: best 5 / 20 / 60 minute power of a stream
- formulas: duration normalization and blending
"""

from .estimator import FtpEstimator, FtpEstimate, InvalidFtpError
from .intervals import (
    PowerIntervals,
    InsufficientPowerData,
    compute_power_intervals,
    best_window_sum,
)
from .formulas import normalize_power, blend_ftp, apply_idle_loss, round_half_up
from .schemas import FtpEstimateResponse, FtpSaveRequest, FtpSaveResponse

__all__ = [
    "FtpEstimator",
    "FtpEstimate",
    "InvalidFtpError",
    "PowerIntervals",
    "InsufficientPowerData",
    "compute_power_intervals",
    "best_window_sum",
    "normalize_power",
    "blend_ftp",
    "apply_idle_loss",
    "round_half_up",
    "FtpEstimateResponse",
    "FtpSaveRequest",
    "FtpSaveResponse",
]
