# Replicate predictions API over httpx.AsyncClient.
# create -> POST /models/{owner}/{name}/predictions (or /predictions with a version),
# status -> GET /predictions/{id}, raw-bytes input -> POST /files.

from typing import Any

import httpx
import structlog

from editgate.jobs import GenerationJob, JobStatus
from editgate.providers.protocol import ProviderError
from editgate.validation import is_valid_model_id

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.replicate.com/v1"

_STATUS_MAP: dict[str, JobStatus] = {
    "starting": JobStatus.pending,
    "processing": JobStatus.running,
    "succeeded": JobStatus.succeeded,
    "failed": JobStatus.failed,
    "canceled": JobStatus.failed,
}


def parse_prediction(payload: dict[str, Any]) -> GenerationJob:
    """Map a prediction JSON object onto a GenerationJob."""
    raw_status = str(payload.get("status") or "starting")
    status = _STATUS_MAP.get(raw_status, JobStatus.pending)
    error = payload.get("error")
    if raw_status == "canceled" and not error:
        error = "Prediction was canceled"
    return GenerationJob(
        id=str(payload.get("id", "")),
        status=status,
        output=payload.get("output"),
        error=str(error) if error is not None else None,
        raw_status=raw_status,
    )


class ReplicateProvider:
    """Replicate HTTP client. One instance per process, shared across requests."""

    def __init__(
        self,
        api_token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "replicate"

    async def create_job(self, model: str, input: dict[str, Any]) -> GenerationJob:
        """Start a prediction. Raises ValueError for a malformed model identifier."""
        if not is_valid_model_id(model):
            raise ValueError(f"invalid model identifier: {model!r}")
        if ":" in model:
            # owner/name:version pins an exact version
            _, version = model.split(":", 1)
            response = await self._client.post(
                "/predictions", json={"version": version, "input": input}
            )
        else:
            response = await self._client.post(f"/models/{model}/predictions", json={"input": input})
        job = parse_prediction(self._json_or_raise(response))
        logger.info("prediction_created", job_id=job.id, model=model, status=job.raw_status)
        return job

    async def get_job(self, job_id: str) -> GenerationJob:
        response = await self._client.get(f"/predictions/{job_id}")
        return parse_prediction(self._json_or_raise(response))

    async def upload_file(self, data: bytes, content_type: str, filename: str) -> str:
        response = await self._client.post(
            "/files",
            files={"content": (filename, data, content_type)},
        )
        payload = self._json_or_raise(response)
        url = (payload.get("urls") or {}).get("get")
        if not url:
            raise ProviderError(response.status_code, "file upload returned no URL")
        logger.info("file_uploaded", size=len(data), content_type=content_type)
        return str(url)

    async def check(self) -> dict[str, Any]:
        """Lightweight connectivity and credential check."""
        response = await self._client.get("/account")
        payload = self._json_or_raise(response)
        return {"status": "success", "account": payload.get("username")}

    async def close(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _json_or_raise(response: httpx.Response) -> dict[str, Any]:
        if response.is_error:
            try:
                detail = str(response.json().get("detail", ""))
            except (ValueError, AttributeError):
                detail = response.text[:200]
            raise ProviderError(response.status_code, detail)
        try:
            payload = response.json()
        except ValueError:
            raise ProviderError(response.status_code, "response body is not JSON") from None
        if not isinstance(payload, dict):
            raise ProviderError(response.status_code, "unexpected response body")
        return payload
