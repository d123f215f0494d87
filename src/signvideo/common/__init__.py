"""Common module - protocols, schemas, errors and base classes."""

from .errors import (
    InputValidationError,
    InternalError,
    InvalidRequestIdError,
    InvalidTransitionError,
    JobNotFoundError,
    PollingTimeoutError,
    ProcessingError,
    SignVideoError,
)
from .job_repository import JobRepository
from .job_repository_impl import InMemoryJobRepository
from .schema_job_record import JobRecord, JobRecordUpdate, JobStatus
from .video_processor import VideoProcessor

__all__ = [
    "InMemoryJobRepository",
    "InputValidationError",
    "InternalError",
    "InvalidRequestIdError",
    "InvalidTransitionError",
    "JobNotFoundError",
    "JobRecord",
    "JobRecordUpdate",
    "JobRepository",
    "JobStatus",
    "PollingTimeoutError",
    "ProcessingError",
    "SignVideoError",
    "VideoProcessor",
]
