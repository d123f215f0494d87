"""Client for submitting text and polling until the video is ready."""

import asyncio
from collections.abc import Callable

import httpx
from loguru import logger

from .common.errors import InputValidationError, JobNotFoundError, PollingTimeoutError
from .common.schema_job_record import GenerateVideoRequest, JobCreatedResponse, JobStatusResponse


class VideoStatusPoller:
    """Submits generation requests and polls their status at a fixed interval.

    Polling stops as soon as a terminal status (completed or failed) is seen.
    While is_active() returns False no status requests are sent; the poller
    keeps waiting and resumes once the caller becomes active again.

    Example:
        async with VideoStatusPoller("http://127.0.0.1:8000") as poller:
            status = await poller.generate("Hello")
            print(status.video_url)
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        interval: float = 2.0,
        max_polls: int | None = None,
        max_consecutive_errors: int = 3,
        is_active: Callable[[], bool] | None = None,
        on_update: Callable[[JobStatusResponse], None] | None = None,
    ):
        if client is None and base_url is None:
            raise ValueError("Either base_url or client must be provided")
        self._owns_client: bool = client is None
        self.client: httpx.AsyncClient = (
            client if client is not None else httpx.AsyncClient(base_url=base_url or "", timeout=30.0)
        )
        self.interval: float = interval
        self.max_polls: int | None = max_polls
        self.max_consecutive_errors: int = max_consecutive_errors
        self.is_active: Callable[[], bool] = is_active if is_active is not None else (lambda: True)
        self.on_update: Callable[[JobStatusResponse], None] | None = on_update

    async def __aenter__(self) -> "VideoStatusPoller":
        return self

    async def __aexit__(self, *_exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def submit(self, text: str) -> int:
        """Start a generation job and return its request id.

        Raises:
            InputValidationError: If the server rejected the text
            httpx.HTTPStatusError: For any other non-2xx reply
        """
        request = GenerateVideoRequest(text=text)
        response = await self.client.post("/api/generate-video", json=request.model_dump(by_alias=True))
        if response.status_code == 400:
            body = response.json()
            raise InputValidationError(body.get("errors") or [], body.get("message", "Invalid input"))
        _ = response.raise_for_status()
        created = JobCreatedResponse.model_validate(response.json())
        logger.info(f"Submitted video request {created.request_id}")
        return created.request_id

    async def fetch_status(self, request_id: int) -> JobStatusResponse:
        response = await self.client.get(f"/api/video-status/{request_id}")
        if response.status_code == 404:
            raise JobNotFoundError(request_id)
        _ = response.raise_for_status()
        return JobStatusResponse.model_validate(response.json())

    async def poll(self, request_id: int) -> JobStatusResponse:
        """Poll until the job is completed or failed.

        Raises:
            PollingTimeoutError: If max_polls status checks did not reach a
                terminal state
            JobNotFoundError: If the server does not know the request id
            httpx.TransportError: After max_consecutive_errors failures in a row
        """
        polls = 0
        errors = 0
        while True:
            if self.is_active():
                polls += 1
                try:
                    status = await self.fetch_status(request_id)
                except httpx.TransportError as e:
                    errors += 1
                    if errors >= self.max_consecutive_errors:
                        raise
                    logger.warning(f"Status check {polls} for request {request_id} failed: {e}")
                else:
                    errors = 0
                    if self.on_update is not None:
                        self.on_update(status)
                    if status.status.is_terminal:
                        logger.info(f"Video request {request_id} finished: {status.status.value}")
                        return status

                if self.max_polls is not None and polls >= self.max_polls:
                    raise PollingTimeoutError(request_id, polls)

            await asyncio.sleep(self.interval)

    async def generate(self, text: str) -> JobStatusResponse:
        request_id = await self.submit(text)
        return await self.poll(request_id)
