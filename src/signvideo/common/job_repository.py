"""JobRepository Protocol - interface for job persistence."""

from typing import Protocol, runtime_checkable

from .schema_job_record import JobRecord, JobRecordUpdate, JobStatus


@runtime_checkable
class JobRepository(Protocol):
    """Protocol for job persistence operations.

    The repository is the only owner of JobRecords. Every mutation goes
    through update(), which merges a partial patch into the stored record.
    Implementations must keep each operation atomic with respect to
    concurrent callers and must reject backward status transitions.
    """

    def create(self, input_text: str) -> JobRecord:
        """Store a new pending job.

        Returns:
            The created record with the next unused integer id
        """
        ...

    def get(self, job_id: int) -> JobRecord | None:
        """Get job by ID."""
        ...

    def update(self, job_id: int, updates: JobRecordUpdate) -> JobRecord | None:
        """Merge non-null patch fields into the stored job.

        Args:
            job_id: Job identifier
            updates: Typed partial update

        Returns:
            The merged record, or None if the job does not exist

        Raises:
            InvalidTransitionError: If the patch would move the job backward
                or out of a terminal state
        """
        ...

    def list_by_status(self, status: JobStatus) -> list[JobRecord]:
        """Return every job currently in the given status."""
        ...
