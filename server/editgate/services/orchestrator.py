# Core edit orchestrator: auth → provider check → rate limit → form →
# validation → submit → wait → normalize. Short-circuits on the first failure
# by raising an EditGateError; the app's exception handlers render it.


import time

import structlog
from opentelemetry import trace
from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from editgate.auth import BasicAuthenticator
from editgate.config import Settings
from editgate.exceptions import (
    EditGateError,
    ProviderUnavailableError,
    RateLimitError,
    ValidationError,
)
from editgate.jobs import EditRequest
from editgate.providers.protocol import GenerationProvider
from editgate.rate_limit import RateLimiter, client_identity
from editgate.schemas import EditResponse
from editgate.services.metrics import SUCCESS, EditMetrics
from editgate.services.normalizer import normalize_output
from editgate.services.submitter import JobSubmitter
from editgate.services.waiter import CompletionWaiter
from editgate.validation import (
    matched_category,
    validate_image,
    validate_model,
    validate_prompt,
)

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


class EditOrchestrator:
    """Runs one edit request: single prompt, single image, single job."""

    def __init__(
        self,
        settings: Settings,
        authenticator: BasicAuthenticator,
        rate_limiter: RateLimiter,
        provider: GenerationProvider,
        metrics: EditMetrics | None = None,
    ) -> None:
        self._settings = settings
        self._authenticator = authenticator
        self._rate_limiter = rate_limiter
        self._metrics = metrics
        self._submitter = JobSubmitter(provider, input_mode=settings.image_input_mode)
        self._waiter = CompletionWaiter(
            provider,
            poll_interval=settings.poll_interval_seconds,
            timeout=settings.generation_timeout_seconds,
        )

    async def handle(self, request: Request) -> EditResponse:
        """Full request path. Every outcome is counted, including failures."""
        start = time.perf_counter()
        outcome = "UnhandledError"
        images = 0
        try:
            response = await self._handle(request)
            outcome = SUCCESS
            images = len(response.images)
            return response
        except EditGateError as e:
            outcome = type(e).__name__
            raise
        finally:
            if self._metrics:
                elapsed_ms = (time.perf_counter() - start) * 1000
                self._metrics.record(outcome, elapsed_ms, images=images)

    async def _handle(self, request: Request) -> EditResponse:
        self._authenticator.require(request.headers.get("authorization"))

        if not self._settings.provider_configured:
            logger.error("provider_not_configured", hint="Set REPLICATE_API_TOKEN")
            raise ProviderUnavailableError("Image generation provider is not configured")

        client_id = client_identity(request, self._settings.trust_forwarded_for)
        if not self._rate_limiter.allow(client_id):
            retry_after = self._rate_limiter.retry_after(client_id)
            logger.warning("rate_limit_exceeded", client_id=client_id, retry_after=retry_after)
            raise RateLimitError(retry_after)

        edit = await self.read_edit_request(request)
        return await self.edit(edit)

    async def read_edit_request(self, request: Request) -> EditRequest:
        """Parse and validate the multipart body into an immutable EditRequest."""
        content_type = request.headers.get("content-type", "")
        if "multipart/form-data" not in content_type.lower():
            raise ValidationError("Invalid content type")
        try:
            form = await request.form()
        except (MultiPartException, StarletteHTTPException) as e:
            logger.info("form_parse_failed", error=str(e))
            raise ValidationError("Invalid form data") from e

        # Spooled upload files are released whatever the outcome.
        try:
            return await self._edit_request_from(form)
        finally:
            await form.close()

    async def _edit_request_from(self, form: FormData) -> EditRequest:
        raw_prompt = form.get("prompt")
        prompt = raw_prompt.strip() if isinstance(raw_prompt, str) else ""
        raw_model = form.get("model")
        model = (raw_model.strip() if isinstance(raw_model, str) else "") or (
            self._settings.default_model
        )

        reason = validate_prompt(prompt, max_length=self._settings.max_prompt_length)
        if reason:
            if category := matched_category(prompt):
                logger.warning("prompt_filtered", category=category)
            raise ValidationError(reason)

        upload = form.get("image")
        data: bytes | None = None
        image_type: str | None = None
        filename = "image"
        if isinstance(upload, UploadFile):
            # Read one byte past the ceiling: enough to detect oversize
            # without buffering an arbitrarily large upload.
            data = await upload.read(self._settings.max_file_size_bytes + 1)
            image_type = upload.content_type
            filename = upload.filename or filename

        reason = validate_image(data, image_type, max_bytes=self._settings.max_file_size_bytes)
        if reason:
            raise ValidationError(reason)

        reason = validate_model(model)
        if reason:
            logger.warning("model_rejected", model=model[:100])
            raise ValidationError(reason)

        return EditRequest(
            prompt=prompt,
            image=data or b"",
            content_type=(image_type or "").split(";")[0].strip().lower(),
            model=model,
            filename=filename,
        )

    async def edit(self, edit: EditRequest) -> EditResponse:
        """Submit → wait → normalize for an already validated request."""
        with tracer.start_as_current_span("edit") as span:
            span.set_attribute("model", edit.model)
            span.set_attribute("prompt_length", len(edit.prompt))

            submitted_at = self._waiter.now()
            with tracer.start_as_current_span("submit_job"):
                job = await self._submitter.submit(edit)
            span.set_attribute("job_id", job.id)

            with tracer.start_as_current_span("wait_for_completion"):
                final = await self._waiter.wait(job, submitted_at)

            with tracer.start_as_current_span("normalize_output"):
                images = normalize_output(final.output)

            span.set_attribute("images", len(images))
            logger.info(
                "edit_completed",
                job_id=job.id,
                model=edit.model,
                images=len(images),
                elapsed_s=round(self._waiter.now() - submitted_at, 2),
            )
            return EditResponse(images=images, model=edit.model, prompt=edit.prompt)

    def reject_method(self, request: Request) -> None:
        """Non-POST verbs: credentials are still checked before the 405."""
        self._authenticator.require(request.headers.get("authorization"))
        raise StarletteHTTPException(
            status_code=405, detail="Method not allowed", headers={"Allow": "POST"}
        )
