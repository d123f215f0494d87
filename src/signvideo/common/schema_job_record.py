from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.completed, JobStatus.failed)

    def can_transition_to(self, target: "JobStatus") -> bool:
        return target in _TRANSITIONS[self]


_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.pending: frozenset({JobStatus.processing, JobStatus.failed}),
    JobStatus.processing: frozenset({JobStatus.completed, JobStatus.failed}),
    JobStatus.completed: frozenset(),
    JobStatus.failed: frozenset(),
}


class JobRecord(BaseModel):
    """Stored job representation.

    Records are immutable; the repository replaces them on every update.
    A record with a video_url must be completed and a completed record must
    carry a video_url.
    """

    id: int = Field(..., ge=1)
    input_text: str
    status: JobStatus = JobStatus.pending
    video_url: str | None = None
    error_message: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def check_result_matches_status(self) -> "JobRecord":
        if self.status == JobStatus.completed and not self.video_url:
            raise ValueError("completed job requires a video_url")
        if self.status != JobStatus.completed and self.video_url is not None:
            raise ValueError(f"video_url is only allowed on completed jobs, not '{self.status.value}'")
        return self


class JobRecordUpdate(BaseModel):
    """Partial patch merged into a JobRecord. None means 'leave unchanged'."""

    status: JobStatus | None = None
    video_url: str | None = None
    error_message: str | None = None

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="forbid")


# ─────────────────────────────────────────────────────────────
# Wire models (camelCase on the wire)
# ─────────────────────────────────────────────────────────────


class WireModel(BaseModel):
    model_config: ClassVar[ConfigDict] = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class GenerateVideoRequest(WireModel):
    text: str = Field(..., description="Text to translate into sign language")


class JobCreatedResponse(WireModel):
    success: bool = True
    request_id: int
    message: str = "Video generation started"


class JobStatusResponse(WireModel):
    success: bool = True
    status: JobStatus
    video_url: str | None = None
    input_text: str

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobStatusResponse":
        return cls(
            status=record.status,
            video_url=record.video_url,
            input_text=record.input_text,
        )


class JobSummary(WireModel):
    id: int
    status: JobStatus
    video_url: str | None = None
    input_text: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: JobRecord) -> "JobSummary":
        return cls(
            id=record.id,
            status=record.status,
            video_url=record.video_url,
            input_text=record.input_text,
            created_at=record.created_at,
        )


class JobListResponse(WireModel):
    success: bool = True
    requests: list[JobSummary] = Field(default_factory=list)


class CancelResponse(WireModel):
    success: bool = True
    cancelled: bool


class ErrorResponse(WireModel):
    success: bool = False
    message: str
    errors: list[dict[str, Any]] | None = None
