# ─────────────────────────────────────────────────────────────────────────────
# Test helpers - credentials, sample images, scripted provider
# ─────────────────────────────────────────────────────────────────────────────

import base64
from typing import Any

from editgate.jobs import GenerationJob, JobStatus

TEST_USER = "editor"
TEST_PASSWORD = "s3cret:with-colon"
JPEG_HEADER = b"\xff\xd8\xff\xe0"


def basic_auth(username: str = TEST_USER, password: str = TEST_PASSWORD) -> dict[str, str]:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


def jpeg_bytes(size: int = 1024) -> bytes:
    return JPEG_HEADER + b"\x00" * max(size - len(JPEG_HEADER), 0)


class FakeProvider:
    """In-memory GenerationProvider driven by a script of job snapshots.

    get_job returns the scripted snapshots in order and keeps repeating the
    last one, so a script ending in a non-terminal status never finishes.
    """

    name = "fake"

    def __init__(
        self,
        script: list[GenerationJob] | None = None,
        *,
        create_error: Exception | None = None,
        poll_error: Exception | None = None,
        initial_status: JobStatus = JobStatus.pending,
    ) -> None:
        self._script = script or [GenerationJob(id="job-1", status=JobStatus.running)]
        self._create_error = create_error
        self._poll_error = poll_error
        self._initial_status = initial_status
        self.created: list[tuple[str, dict[str, Any]]] = []
        self.uploads: list[tuple[bytes, str, str]] = []
        self.polls = 0
        self.closed = False

    @classmethod
    def succeeding(cls, output: Any, polls_before_done: int = 1) -> "FakeProvider":
        running = [GenerationJob(id="job-1", status=JobStatus.running)] * polls_before_done
        done = GenerationJob(id="job-1", status=JobStatus.succeeded, output=output)
        return cls([*running, done])

    @classmethod
    def failing(cls, error: str | None) -> "FakeProvider":
        return cls([GenerationJob(id="job-1", status=JobStatus.failed, error=error)])

    async def create_job(self, model: str, input: dict[str, Any]) -> GenerationJob:
        if self._create_error is not None:
            raise self._create_error
        self.created.append((model, input))
        return GenerationJob(id="job-1", status=self._initial_status)

    async def get_job(self, job_id: str) -> GenerationJob:
        self.polls += 1
        if self._poll_error is not None:
            raise self._poll_error
        return self._script[min(self.polls, len(self._script)) - 1]

    async def upload_file(self, data: bytes, content_type: str, filename: str) -> str:
        self.uploads.append((data, content_type, filename))
        return "https://files.example.com/uploads/1"

    async def check(self) -> dict[str, Any]:
        return {"status": "success", "account": "tester"}

    async def close(self) -> None:
        self.closed = True
