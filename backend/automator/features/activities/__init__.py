"""
Activity processing module.

Usage:
    from automator.features.activities import ActivityQueue, ActivityProcessor

Components:
- ActivityQueue: idempotent queue of activities waiting to be processed
- ActivityProcessor: runs activities through recipes and saves outcomes
- QueueRunner: background task draining the queue

Models:
- ProcessedActivity: queue entry and processing outcome
"""

from .models import ProcessedActivity
from .repository import ProcessedActivityRepository
from .queue import ActivityQueue
from .processor import ActivityProcessor
from .background import QueueRunner
from .exceptions import (
    ActivityProcessingError,
    InvalidDateRangeError,
    MissingFilterError,
)
from .schemas import (
    ActivityFilter,
    BatchProcessRequest,
    BatchProcessResponse,
    ProcessedActivityResponse,
    DeleteProcessedResponse,
)

__all__ = [
    # Models
    "ProcessedActivity",
    "ProcessedActivityRepository",
    # Services
    "ActivityQueue",
    "ActivityProcessor",
    "QueueRunner",
    # Errors
    "ActivityProcessingError",
    "InvalidDateRangeError",
    "MissingFilterError",
    # Schemas
    "ActivityFilter",
    "BatchProcessRequest",
    "BatchProcessResponse",
    "ProcessedActivityResponse",
    "DeleteProcessedResponse",
]
