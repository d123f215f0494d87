"""signvideo - text to sign language video jobs with status polling."""

from .app import create_app
from .client import VideoStatusPoller
from .common.errors import (
    InputValidationError,
    InvalidTransitionError,
    JobNotFoundError,
    PollingTimeoutError,
    ProcessingError,
    SignVideoError,
)
from .common.job_repository import JobRepository
from .common.job_repository_impl import InMemoryJobRepository
from .common.schema_job_record import JobRecord, JobRecordUpdate, JobStatus, JobStatusResponse
from .common.video_processor import VideoProcessor
from .config import Settings
from .master import create_master_router
from .plugins.stock_video import StockVideoProcessor
from .utils.events import BroadcasterBase, MQTTBroadcaster, NoOpBroadcaster, create_broadcaster
from .worker import Worker

__version__ = "0.1.0"

__all__ = [
    "JobRecord",
    "JobRecordUpdate",
    "JobStatus",
    "JobStatusResponse",
    "JobRepository",
    "InMemoryJobRepository",
    "VideoProcessor",
    "StockVideoProcessor",
    "Worker",
    "VideoStatusPoller",
    "Settings",
    "BroadcasterBase",
    "MQTTBroadcaster",
    "NoOpBroadcaster",
    "SignVideoError",
    "InputValidationError",
    "InvalidTransitionError",
    "JobNotFoundError",
    "PollingTimeoutError",
    "ProcessingError",
    "__version__",
    "create_app",
    "create_broadcaster",
    "create_master_router",
]
