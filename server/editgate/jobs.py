# Core value types shared by the submitter, waiter, and orchestrator.

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class JobStatus(StrEnum):
    """Lifecycle of a provider job: Pending -> Running -> Succeeded | Failed."""

    pending = "pending"
    running = "running"
    succeeded = "succeeded"
    failed = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.succeeded, JobStatus.failed)


@dataclass(frozen=True)
class EditRequest:
    """A validated edit: one prompt against one image. Immutable."""

    prompt: str
    image: bytes = field(repr=False)
    content_type: str
    model: str
    filename: str = "image"


@dataclass
class GenerationJob:
    """Provider-side job snapshot. Only the provider changes it; we re-read it."""

    id: str
    status: JobStatus
    output: Any = None
    error: str | None = None
    raw_status: str = ""
