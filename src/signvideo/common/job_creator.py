"""Request handling shared by the HTTP routes: accept, look up and list jobs."""

from typing import Any, Protocol

from loguru import logger

from .errors import InputValidationError, JobNotFoundError
from .job_repository import JobRepository
from .schema_job_record import (
    JobCreatedResponse,
    JobListResponse,
    JobStatus,
    JobStatusResponse,
    JobSummary,
)

DEFAULT_MAX_TEXT_LENGTH = 500


class JobDispatcher(Protocol):
    def submit(self, job_id: int) -> None: ...


def validate_input_text(text: str, max_length: int = DEFAULT_MAX_TEXT_LENGTH) -> list[dict[str, Any]]:
    """Return field errors for text; an empty list means the text is acceptable."""
    errors: list[dict[str, Any]] = []
    if len(text) < 1:
        errors.append(
            {
                "code": "too_small",
                "minimum": 1,
                "type": "string",
                "inclusive": True,
                "message": "Text is required",
                "path": ["text"],
            }
        )
    elif len(text) > max_length:
        errors.append(
            {
                "code": "too_big",
                "maximum": max_length,
                "type": "string",
                "inclusive": True,
                "message": f"Text must be at most {max_length} characters",
                "path": ["text"],
            }
        )
    return errors


def create_job_from_text(
    *,
    text: str,
    repository: JobRepository,
    dispatcher: JobDispatcher,
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
) -> JobCreatedResponse:
    """Validate text, store a pending job and hand it to the dispatcher.

    Returns before any processing happens, so the job may still be pending
    when the caller first checks on it.

    Raises:
        InputValidationError: If text is empty or too long. No job is created.
    """
    errors = validate_input_text(text, max_text_length)
    if errors:
        raise InputValidationError(errors)

    job = repository.create(text)
    dispatcher.submit(job.id)

    return JobCreatedResponse(request_id=job.id)


def get_job_status(job_id: int, repository: JobRepository) -> JobStatusResponse:
    job = repository.get(job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    return JobStatusResponse.from_record(job)


def list_jobs_by_status(status: JobStatus, repository: JobRepository) -> JobListResponse:
    jobs = repository.list_by_status(status)
    logger.debug(f"{len(jobs)} jobs in status '{status.value}'")
    return JobListResponse(requests=[JobSummary.from_record(job) for job in jobs])
