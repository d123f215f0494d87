"""Exception hierarchy shared by the store, the worker and the HTTP layer."""

from __future__ import annotations

from typing import Any


class SignVideoError(Exception):
    """Base class for all signvideo errors."""


class InputValidationError(SignVideoError):
    """Submitted text was rejected before any job was created."""

    def __init__(self, errors: list[dict[str, Any]], message: str = "Invalid input"):
        self.errors: list[dict[str, Any]] = errors
        self.message: str = message
        super().__init__(message)


class InvalidRequestIdError(SignVideoError):
    def __init__(self, raw_id: str):
        self.raw_id: str = raw_id
        super().__init__(f"Invalid request ID '{raw_id}'")


class JobNotFoundError(SignVideoError):
    def __init__(self, job_id: int):
        self.job_id: int = job_id
        super().__init__(f"Video request {job_id} not found")


class ProcessingError(SignVideoError):
    """Raised by a VideoProcessor when it cannot produce a video."""


class InvalidTransitionError(SignVideoError):
    def __init__(self, job_id: int, current: str, requested: str):
        self.job_id: int = job_id
        self.current: str = current
        self.requested: str = requested
        super().__init__(
            f"Job {job_id} cannot move from '{current}' to '{requested}'"
        )


class InternalError(SignVideoError):
    """Unexpected failure while handling a request; message is client-safe."""

    def __init__(self, message: str):
        self.message: str = message
        super().__init__(message)


class PollingTimeoutError(SignVideoError):
    def __init__(self, request_id: int, polls: int):
        self.request_id: int = request_id
        self.polls: int = polls
        super().__init__(
            f"Video request {request_id} not finished after {polls} status checks"
        )
