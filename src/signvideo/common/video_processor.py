"""VideoProcessor - Abstract base class for text-to-video backends."""

from abc import ABC, abstractmethod

from loguru import logger

from .schema_job_record import JobRecord, JobRecordUpdate, JobStatus


class VideoProcessor(ABC):
    """
    Stateless, template-method based processor.

    - run() turns text into a video URL or raises ProcessingError
    - execute() owns the mapping to a terminal JobRecordUpdate
    """

    @property
    @abstractmethod
    def processor_type(self) -> str: ...

    def setup(self) -> None:
        """Optional per-execution setup."""
        pass

    @abstractmethod
    async def run(self, text: str) -> str:
        """
        Generate a video for text.

        - Returns the URL of the finished video
        - Raises ProcessingError when no video can be produced
        """
        ...

    async def execute(self, job_record: JobRecord) -> JobRecordUpdate:
        try:
            self.setup()

            video_url = await self.run(job_record.input_text)

            return JobRecordUpdate(
                status=JobStatus.completed,
                video_url=video_url,
            )

        except Exception as exc:
            logger.error(
                f"Video generation failed for job {job_record.id} "
                f"({self.processor_type}): {exc}"
            )
            return JobRecordUpdate(
                status=JobStatus.failed,
                error_message=str(exc) or type(exc).__name__,
            )
