"""In-memory JobRepository."""

import itertools
import threading
from typing import override

from loguru import logger

from .errors import InvalidTransitionError
from .job_repository import JobRepository
from .schema_job_record import JobRecord, JobRecordUpdate, JobStatus, utc_now


class InMemoryJobRepository(JobRepository):
    """Process-lifetime job store backed by a dict.

    Jobs are never evicted. A lock guards every operation so update()'s
    read-merge-write cannot interleave with another thread.
    """

    def __init__(self) -> None:
        self._jobs: dict[int, JobRecord] = {}
        self._ids: itertools.count[int] = itertools.count(1)
        self._lock: threading.Lock = threading.Lock()

    @override
    def create(self, input_text: str) -> JobRecord:
        with self._lock:
            job_id = next(self._ids)
            now = utc_now()
            job = JobRecord(
                id=job_id,
                input_text=input_text,
                status=JobStatus.pending,
                created_at=now,
                updated_at=now,
            )
            self._jobs[job_id] = job
        logger.info(f"Job {job_id} created ({len(input_text)} chars)")
        return job

    @override
    def get(self, job_id: int) -> JobRecord | None:
        with self._lock:
            return self._jobs.get(job_id)

    @override
    def update(self, job_id: int, updates: JobRecordUpdate) -> JobRecord | None:
        patch = updates.model_dump(exclude_none=True)
        with self._lock:
            existing = self._jobs.get(job_id)
            if existing is None:
                logger.warning(f"Update for unknown job {job_id} ignored: {patch}")
                return None

            if all(getattr(existing, field) == value for field, value in patch.items()):
                return existing

            target = patch.get("status", existing.status)
            if target != existing.status and not existing.status.can_transition_to(target):
                raise InvalidTransitionError(job_id, existing.status.value, target.value)
            if target == existing.status and existing.status.is_terminal and patch.keys() - {"status"}:
                raise InvalidTransitionError(job_id, existing.status.value, target.value)

            # model_copy skips validation, so rebuild to re-check invariants
            merged = JobRecord.model_validate(
                {**existing.model_dump(), **patch, "updated_at": utc_now()}
            )
            self._jobs[job_id] = merged
        return merged

    @override
    def list_by_status(self, status: JobStatus) -> list[JobRecord]:
        with self._lock:
            return sorted(
                (job for job in self._jobs.values() if job.status == status),
                key=lambda job: job.id,
            )

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
