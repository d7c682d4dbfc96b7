"""
Activity processing errors surfaced to callers.
"""


class ActivityProcessingError(Exception):
    """Base activity processing error."""
    pass


class InvalidDateRangeError(ActivityProcessingError, ValueError):
    """Batch processing window goes further back than the plan allows."""
    pass


class MissingFilterError(ActivityProcessingError, ValueError):
    """Bulk delete called without a user and without a max age."""
    pass
