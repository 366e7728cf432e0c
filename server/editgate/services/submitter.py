# Turns a validated EditRequest into a provider job. Never retries.

import base64
from typing import Any, Literal

import httpx
import structlog

from editgate.exceptions import SubmissionError
from editgate.jobs import EditRequest, GenerationJob
from editgate.providers.protocol import GenerationProvider, ProviderError

logger = structlog.get_logger(__name__)

InputMode = Literal["data_url", "file_upload"]

# Fixed generation parameters sent with every edit.
GENERATION_PARAMETERS: dict[str, Any] = {
    "go_fast": True,
    "output_format": "webp",
    "output_quality": 80,
    "aspect_ratio": "match_input_image",
}


def encode_data_url(data: bytes, content_type: str) -> str:
    """``data:<mime>;base64,<payload>``"""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


def build_input(edit: EditRequest, image_ref: str) -> dict[str, Any]:
    return {"prompt": edit.prompt, "image": image_ref, **GENERATION_PARAMETERS}


class JobSubmitter:
    """Submit edits to a provider, inlining the image or uploading it first."""

    def __init__(self, provider: GenerationProvider, input_mode: InputMode = "data_url") -> None:
        self._provider = provider
        self._input_mode = input_mode

    @property
    def input_mode(self) -> InputMode:
        return self._input_mode

    async def submit(self, edit: EditRequest) -> GenerationJob:
        try:
            image_ref = await self._image_reference(edit)
            job = await self._provider.create_job(edit.model, build_input(edit, image_ref))
        except (httpx.HTTPError, ProviderError) as e:
            logger.error(
                "job_submission_failed",
                model=edit.model,
                input_mode=self._input_mode,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise SubmissionError(str(e)) from e

        logger.info(
            "job_submitted",
            job_id=job.id,
            model=edit.model,
            status=job.status.value,
            input_mode=self._input_mode,
        )
        return job

    async def _image_reference(self, edit: EditRequest) -> str:
        if self._input_mode == "file_upload":
            return await self._provider.upload_file(edit.image, edit.content_type, edit.filename)
        return encode_data_url(edit.image, edit.content_type)
