"""Master module - HTTP routes for video generation jobs."""

import re
from typing import Annotated

from fastapi import APIRouter, Body, Query
from loguru import logger

from .common.errors import InternalError, InvalidRequestIdError, JobNotFoundError, SignVideoError
from .common.job_creator import (
    DEFAULT_MAX_TEXT_LENGTH,
    create_job_from_text,
    get_job_status,
    list_jobs_by_status,
)
from .common.job_repository import JobRepository
from .common.schema_job_record import (
    CancelResponse,
    ErrorResponse,
    GenerateVideoRequest,
    JobCreatedResponse,
    JobListResponse,
    JobStatus,
    JobStatusResponse,
)
from .worker import Worker


_REQUEST_ID = re.compile(r"-?[0-9]+")


def parse_request_id(raw_id: str) -> int:
    # int() alone would also take "1_0", " 7 " and non-ASCII digits
    if not _REQUEST_ID.fullmatch(raw_id):
        raise InvalidRequestIdError(raw_id)
    return int(raw_id)


def create_master_router(
    repository: JobRepository,
    worker: Worker,
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
) -> APIRouter:
    """Create the job router with injected dependencies.

    Args:
        repository: JobRepository implementation for job persistence
        worker: Worker that runs submitted jobs in the background
        max_text_length: Longest accepted input text

    Returns:
        APIRouter exposing generate, status, list and cancel endpoints.
        Mount it under "/api" and register the handlers from
        signvideo.app.register_exception_handlers.

    Example:
        repository = InMemoryJobRepository()
        worker = Worker(repository, StockVideoProcessor())

        app = FastAPI()
        app.include_router(create_master_router(repository, worker), prefix="/api")
    """
    router = APIRouter(
        responses={
            400: {"model": ErrorResponse},
            404: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        }
    )

    @router.post("/generate-video", response_model=JobCreatedResponse)
    async def generate_video(
        payload: Annotated[GenerateVideoRequest, Body()],
    ) -> JobCreatedResponse:
        try:
            return create_job_from_text(
                text=payload.text,
                repository=repository,
                dispatcher=worker,
                max_text_length=max_text_length,
            )
        except SignVideoError:
            raise
        except Exception as e:
            logger.exception(f"Video generation error: {e}")
            raise InternalError("Failed to start video generation") from e

    @router.get(
        "/video-status/{request_id}",
        response_model=JobStatusResponse,
        response_model_exclude_none=True,
    )
    async def video_status(request_id: str) -> JobStatusResponse:
        job_id = parse_request_id(request_id)
        try:
            return get_job_status(job_id, repository)
        except SignVideoError:
            raise
        except Exception as e:
            logger.exception(f"Status check error: {e}")
            raise InternalError("Failed to check video status") from e

    @router.get(
        "/video-requests",
        response_model=JobListResponse,
        response_model_exclude_none=True,
    )
    async def video_requests(
        status: Annotated[JobStatus, Query(description="Only return jobs in this state")],
    ) -> JobListResponse:
        try:
            return list_jobs_by_status(status, repository)
        except SignVideoError:
            raise
        except Exception as e:
            logger.exception(f"Listing error: {e}")
            raise InternalError("Failed to list video requests") from e

    @router.post("/video-requests/{request_id}/cancel", response_model=CancelResponse)
    async def cancel_video_request(request_id: str) -> CancelResponse:
        job_id = parse_request_id(request_id)
        try:
            if repository.get(job_id) is None:
                raise JobNotFoundError(job_id)
            cancelled = await worker.cancel(job_id)
        except SignVideoError:
            raise
        except Exception as e:
            logger.exception(f"Cancel error: {e}")
            raise InternalError("Failed to cancel video request") from e
        return CancelResponse(cancelled=cancelled)

    _ = (generate_video, video_status, video_requests, cancel_video_request)
    return router
