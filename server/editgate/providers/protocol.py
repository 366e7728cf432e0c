# ─────────────────────────────────────────────────────────────────────────────
# Provider Protocol - runtime_checkable interface for generation backends
# ─────────────────────────────────────────────────────────────────────────────
# The orchestrator only ever talks to a provider through this surface:
# create a job, read its status, and (for the raw-bytes input mode) upload
# a file. Tests substitute in-memory fakes that satisfy the same Protocol.
# ─────────────────────────────────────────────────────────────────────────────

from typing import Any, Protocol, runtime_checkable

from editgate.jobs import GenerationJob


class ProviderError(Exception):
    """Provider answered with a non-success HTTP status."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        message = f"Provider returned HTTP {status_code}"
        super().__init__(f"{message}: {detail}" if detail else message)


@runtime_checkable
class GenerationProvider(Protocol):
    """Asynchronous image-generation backend (e.g., Replicate predictions)."""

    @property
    def name(self) -> str: ...

    async def create_job(self, model: str, input: dict[str, Any]) -> GenerationJob: ...

    async def get_job(self, job_id: str) -> GenerationJob: ...

    async def upload_file(self, data: bytes, content_type: str, filename: str) -> str: ...

    async def check(self) -> dict[str, Any]: ...

    async def close(self) -> None: ...
