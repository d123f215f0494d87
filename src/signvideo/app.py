"""FastAPI application factory."""

import asyncio
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from .common.errors import (
    InputValidationError,
    InternalError,
    InvalidRequestIdError,
    JobNotFoundError,
)
from .common.job_repository import JobRepository
from .common.job_repository_impl import InMemoryJobRepository
from .common.schema_job_record import ErrorResponse
from .common.video_processor import VideoProcessor
from .config import Settings
from .master import create_master_router
from .plugins.stock_video import StockVideoConfig, StockVideoProcessor
from .utils.events import BroadcasterBase, create_broadcaster
from .worker import Worker, get_processor_registry


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with one at the requested level."""
    logger.remove()
    _ = logger.add(sys.stderr, level=level.upper())


def create_processor(settings: Settings) -> VideoProcessor:
    """Instantiate the processor named by settings.processor.

    Raises:
        RuntimeError: If no processor with that name is registered.
    """
    registry = get_processor_registry()
    processor_cls = registry.get(settings.processor)
    if processor_cls is None:
        available = ", ".join(sorted(registry)) or "none"
        raise RuntimeError(
            f"Unknown processor '{settings.processor}' (available: {available})"
        )
    if issubclass(processor_cls, StockVideoProcessor):
        return processor_cls(StockVideoConfig(delay_seconds=settings.processing_delay))
    return processor_cls()


def _error_response(status_code: int, message: str, errors: list[dict[str, Any]] | None = None) -> JSONResponse:
    body = ErrorResponse(message=message, errors=errors)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


def _request_validation_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    errors: list[dict[str, Any]] = []
    for error in exc.errors():
        # drop the leading "body"/"query"/"path" location segment
        loc = list(error.get("loc", ()))
        errors.append(
            {
                "code": error.get("type", "invalid"),
                "message": error.get("msg", "Invalid value"),
                "path": loc[1:] if len(loc) > 1 else loc,
            }
        )
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """Map signvideo errors onto the JSON error envelope."""

    @app.exception_handler(InputValidationError)
    async def _input_validation(_request: Request, exc: InputValidationError) -> JSONResponse:
        return _error_response(400, exc.message, exc.errors)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "Invalid input", _request_validation_errors(exc))

    @app.exception_handler(InvalidRequestIdError)
    async def _invalid_id(_request: Request, _exc: InvalidRequestIdError) -> JSONResponse:
        return _error_response(400, "Invalid request ID")

    @app.exception_handler(JobNotFoundError)
    async def _not_found(_request: Request, _exc: JobNotFoundError) -> JSONResponse:
        return _error_response(404, "Video request not found")

    @app.exception_handler(InternalError)
    async def _internal(_request: Request, exc: InternalError) -> JSONResponse:
        return _error_response(500, exc.message)

    _ = (_input_validation, _request_validation, _invalid_id, _not_found, _internal)


def create_app(
    settings: Settings | None = None,
    *,
    repository: JobRepository | None = None,
    processor: VideoProcessor | None = None,
    broadcaster: BroadcasterBase | None = None,
) -> FastAPI:
    """Build the service with one store, one worker and one broadcaster.

    Any collaborator left as None is created from settings. The worker is
    started and stopped by the application lifespan.
    """
    settings = settings if settings is not None else Settings()
    repository = repository if repository is not None else InMemoryJobRepository()
    processor = processor if processor is not None else create_processor(settings)

    worker = Worker(
        repository,
        processor,
        broadcaster,
        dispatch_delay=settings.dispatch_delay,
        max_concurrency=settings.max_concurrency,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if broadcaster is None and settings.mqtt_url is not None:
            # connect() blocks while waiting for the broker
            worker.broadcaster = await asyncio.to_thread(
                create_broadcaster, settings.mqtt_url, settings.mqtt_topic_prefix
            )
        worker.start()
        try:
            yield
        finally:
            await worker.stop()
            worker.broadcaster.disconnect()

    app = FastAPI(title="signvideo", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.repository = repository
    app.state.worker = worker

    register_exception_handlers(app)
    app.include_router(
        create_master_router(repository, worker, settings.max_text_length),
        prefix="/api",
    )

    @app.get("/healthz", include_in_schema=False)
    async def healthz() -> dict[str, bool]:
        return {"ok": True}

    _ = healthz
    return app
