"""Domain layer definitions."""

from .executions import ProcessingJob, StoredUpload

__all__ = [
    "ProcessingJob",
    "StoredUpload",
]
