"""Test suite for the in-memory job repository."""

import threading

import pytest

from signvideo.common.errors import InvalidTransitionError
from signvideo.common.job_repository import JobRepository
from signvideo.common.job_repository_impl import InMemoryJobRepository
from signvideo.common.schema_job_record import JobRecordUpdate, JobStatus

VIDEO_URL = "https://videos.test/a.mp4"


def _complete(repo: InMemoryJobRepository, job_id: int) -> None:
    _ = repo.update(job_id, JobRecordUpdate(status=JobStatus.processing))
    _ = repo.update(job_id, JobRecordUpdate(status=JobStatus.completed, video_url=VIDEO_URL))


# ============================================================================
# Test Class 1: create / get
# ============================================================================


class TestCreateAndGet:
    """Test job creation and lookup."""

    def test_implements_protocol(self, job_repository: InMemoryJobRepository) -> None:
        assert isinstance(job_repository, JobRepository)

    def test_ids_start_at_one_and_increase(self, job_repository: InMemoryJobRepository) -> None:
        ids = [job_repository.create(f"text {i}").id for i in range(5)]
        assert ids == [1, 2, 3, 4, 5]

    def test_created_job_is_pending(self, job_repository: InMemoryJobRepository) -> None:
        job = job_repository.create("Hello")
        assert job.status == JobStatus.pending
        assert job.video_url is None
        assert job.input_text == "Hello"

    def test_get_returns_stored_job(self, job_repository: InMemoryJobRepository) -> None:
        job = job_repository.create("Hello")
        assert job_repository.get(job.id) == job

    def test_get_unknown_returns_none(self, job_repository: InMemoryJobRepository) -> None:
        _ = job_repository.create("Hello")
        assert job_repository.get(42) is None

    def test_fresh_repositories_are_isolated(self) -> None:
        first = InMemoryJobRepository()
        second = InMemoryJobRepository()
        _ = first.create("a")
        assert second.create("b").id == 1
        assert len(first) == 1 and len(second) == 1

    def test_concurrent_creates_get_distinct_ids(self, job_repository: InMemoryJobRepository) -> None:
        ids: list[int] = []
        lock = threading.Lock()

        def create_many() -> None:
            for _ in range(50):
                job_id = job_repository.create("x").id
                with lock:
                    ids.append(job_id)

        threads = [threading.Thread(target=create_many) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(ids) == 400
        assert sorted(ids) == list(range(1, 401))


# ============================================================================
# Test Class 2: update (merge patch)
# ============================================================================


class TestUpdate:
    """Test merge-patch updates and transition enforcement."""

    def test_merges_only_given_fields(self, job_repository: InMemoryJobRepository) -> None:
        job = job_repository.create("Hello")
        updated = job_repository.update(job.id, JobRecordUpdate(status=JobStatus.processing))
        assert updated is not None
        assert updated.status == JobStatus.processing
        assert updated.input_text == "Hello"
        assert updated.created_at == job.created_at
        assert job_repository.get(job.id) == updated

    def test_completion_sets_video_url(self, job_repository: InMemoryJobRepository) -> None:
        job = job_repository.create("Hello")
        _complete(job_repository, job.id)
        stored = job_repository.get(job.id)
        assert stored is not None
        assert stored.status == JobStatus.completed
        assert stored.video_url == VIDEO_URL

    def test_unknown_id_is_a_no_op(self, job_repository: InMemoryJobRepository) -> None:
        assert job_repository.update(99, JobRecordUpdate(status=JobStatus.processing)) is None
        assert len(job_repository) == 0

    def test_backward_transition_rejected(self, job_repository: InMemoryJobRepository) -> None:
        job = job_repository.create("Hello")
        _ = job_repository.update(job.id, JobRecordUpdate(status=JobStatus.processing))
        with pytest.raises(InvalidTransitionError):
            _ = job_repository.update(job.id, JobRecordUpdate(status=JobStatus.pending))

    def test_terminal_status_never_changes(self, job_repository: InMemoryJobRepository) -> None:
        job = job_repository.create("Hello")
        _complete(job_repository, job.id)
        with pytest.raises(InvalidTransitionError):
            _ = job_repository.update(job.id, JobRecordUpdate(status=JobStatus.failed))
        with pytest.raises(InvalidTransitionError):
            _ = job_repository.update(
                job.id,
                JobRecordUpdate(status=JobStatus.completed, video_url="https://other.test/b.mp4"),
            )
        stored = job_repository.get(job.id)
        assert stored is not None
        assert stored.video_url == VIDEO_URL

    def test_repeating_terminal_status_is_idempotent(self, job_repository: InMemoryJobRepository) -> None:
        job = job_repository.create("Hello")
        _complete(job_repository, job.id)
        again = job_repository.update(job.id, JobRecordUpdate(status=JobStatus.completed))
        assert again is not None
        assert again.status == JobStatus.completed
        assert again.video_url == VIDEO_URL

    def test_no_op_patch_on_terminal_job_keeps_timestamp(
        self, job_repository: InMemoryJobRepository
    ) -> None:
        job = job_repository.create("Hello")
        _complete(job_repository, job.id)
        stored = job_repository.get(job.id)
        assert stored is not None

        empty = job_repository.update(job.id, JobRecordUpdate())
        repeated = job_repository.update(job.id, JobRecordUpdate(status=JobStatus.completed))
        assert empty == stored
        assert repeated == stored
        assert job_repository.get(job.id).updated_at == stored.updated_at

    def test_failed_job_has_no_video(self, job_repository: InMemoryJobRepository) -> None:
        job = job_repository.create("Hello")
        _ = job_repository.update(job.id, JobRecordUpdate(status=JobStatus.processing))
        failed = job_repository.update(
            job.id, JobRecordUpdate(status=JobStatus.failed, error_message="boom")
        )
        assert failed is not None
        assert failed.video_url is None
        assert failed.error_message == "boom"


# ============================================================================
# Test Class 3: list_by_status
# ============================================================================


class TestListByStatus:
    """Test filtering jobs by status."""

    def test_filters_by_status(self, job_repository: InMemoryJobRepository) -> None:
        first = job_repository.create("a")
        second = job_repository.create("b")
        third = job_repository.create("c")
        _ = job_repository.update(second.id, JobRecordUpdate(status=JobStatus.processing))
        _complete(job_repository, third.id)

        assert [j.id for j in job_repository.list_by_status(JobStatus.pending)] == [first.id]
        assert [j.id for j in job_repository.list_by_status(JobStatus.processing)] == [second.id]
        assert [j.id for j in job_repository.list_by_status(JobStatus.completed)] == [third.id]
        assert job_repository.list_by_status(JobStatus.failed) == []
