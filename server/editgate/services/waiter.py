# Polls a provider job until it reaches a terminal status or the wait ceiling
# (measured from submission) runs out. On timeout the job is abandoned: the
# provider keeps running it, since nothing here can cancel it.

import asyncio
import time
from collections.abc import Callable

import httpx
import structlog

from editgate.exceptions import (
    GenerationTimeoutError,
    ProviderFailureError,
    ProviderUnavailableError,
)
from editgate.jobs import GenerationJob, JobStatus
from editgate.providers.protocol import GenerationProvider, ProviderError

logger = structlog.get_logger(__name__)


class CompletionWaiter:
    """Cooperative poll loop raced against a hard timeout."""

    def __init__(
        self,
        provider: GenerationProvider,
        *,
        poll_interval: float = 1.0,
        timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._clock = clock

    @property
    def timeout(self) -> float:
        return self._timeout

    def now(self) -> float:
        """Current reading of the clock the wait ceiling is measured on."""
        return self._clock()

    async def wait(self, job: GenerationJob, submitted_at: float | None = None) -> GenerationJob:
        """Return the succeeded job, or raise the matching failure.

        submitted_at is a reading of the same clock taken when the job was
        created; the wait ceiling is reduced by however long submission took.
        """
        start = self._clock() if submitted_at is None else submitted_at
        remaining = self._timeout - (self._clock() - start)
        if remaining <= 0:
            raise GenerationTimeoutError(job.id, self._timeout)

        try:
            final = await asyncio.wait_for(self._poll(job), timeout=remaining)
        except TimeoutError:
            logger.warning(
                "job_wait_timed_out",
                job_id=job.id,
                timeout_s=self._timeout,
                hint="Job abandoned; provider-side cancellation is not attempted",
            )
            raise GenerationTimeoutError(job.id, self._timeout) from None

        if final.status is JobStatus.failed:
            logger.error("job_failed", job_id=final.id, provider_error=final.error)
            raise ProviderFailureError(final.error)
        return final

    async def _poll(self, job: GenerationJob) -> GenerationJob:
        current = job
        polls = 0
        while not current.status.is_terminal:
            await asyncio.sleep(self._poll_interval)
            previous = current.status
            try:
                current = await self._provider.get_job(job.id)
            except (httpx.HTTPError, ProviderError) as e:
                logger.error("job_poll_failed", job_id=job.id, polls=polls, error=str(e))
                raise ProviderUnavailableError(
                    "Lost contact with the image generation provider"
                ) from e
            polls += 1
            if current.status is not previous:
                logger.info(
                    "job_status_changed",
                    job_id=job.id,
                    status=current.status.value,
                    previous=previous.value,
                    polls=polls,
                )
        return current
