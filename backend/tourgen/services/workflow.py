"""Tour workflow: upload → submit → poll → resolve.

State machine (one instance per user action):

  IDLE → UPLOADING (0..N) → SUBMITTING → POLLING → RESOLVED | FAILED | TIMED_OUT | CANCELLED

Every failure aborts the instance; nothing is retried.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, Union

from tourgen.config import Settings
from tourgen.errors import Cancelled, GenerationTimedOut, TourGenError
from tourgen.schemas.job import GenerationRequest, JobHandle, JobStatus, ModelTier, TourResult
from tourgen.schemas.prompt import (
    Direction,
    ImageInput,
    ImagePrompt,
    MediaReference,
    MediaSource,
    MultiImagePrompt,
    PanoramaPrompt,
    TextPrompt,
    VideoPrompt,
)
from tourgen.services.job_poll import JobPoller, ProgressCallback
from tourgen.services.job_submit import JobSubmitter
from tourgen.services.media_upload import MediaUploader, is_remote
from tourgen.services.providers.worldlabs import WorldLabsClient
from tourgen.services.result_resolve import ResultResolver

logger = logging.getLogger(__name__)

MediaInput = Union[str, MediaSource, MediaReference]


class WorkflowState(str, enum.Enum):
    IDLE = "idle"
    UPLOADING = "uploading"
    SUBMITTING = "submitting"
    POLLING = "polling"
    RESOLVED = "resolved"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (
            WorkflowState.RESOLVED,
            WorkflowState.FAILED,
            WorkflowState.TIMED_OUT,
            WorkflowState.CANCELLED,
        )


class PromptKind(str, enum.Enum):
    TEXT = "text"
    IMAGE = "image"
    MULTI_IMAGE = "multi_image"
    VIDEO = "video"
    PANORAMA = "panorama"


@dataclass
class PromptInput:
    """Caller input before upload: paths/URLs, inline sources or references."""

    kind: PromptKind
    text: str | None = None
    media: list[MediaInput] = field(default_factory=list)
    directions: list[Direction | None] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


class WorkflowMetrics:
    """Process-wide usage counters for tour workflows."""

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.total_runs = 0
        self.total_resolved = 0
        self.total_errors = 0
        self.total_uploads = 0
        self.total_latency_ms = 0
        self.errors_by_type: dict[str, int] = {}
        self._submitted: dict[str, float] = {}

    def record_submitted(self, operation_id: str) -> None:
        self._submitted[operation_id] = time.monotonic()

    def record_success(self, latency_ms: int) -> None:
        self.total_resolved += 1
        self.total_latency_ms += latency_ms

    def record_resolved(self, operation_id: str | None) -> None:
        """Count a resolved tour; latency runs from submission when it was seen here."""
        started = self._submitted.pop(operation_id, None) if operation_id else None
        latency = int((time.monotonic() - started) * 1000) if started is not None else 0
        self.record_success(latency)

    def record_error(self, error: Exception, operation_id: str | None = None) -> None:
        if operation_id:
            self._submitted.pop(operation_id, None)
        self.total_errors += 1
        code = getattr(error, "code", type(error).__name__)
        self.errors_by_type[code] = self.errors_by_type.get(code, 0) + 1

    def get_metrics(self) -> dict[str, Any]:
        return {
            "service": "tour_workflow",
            "total_runs": self.total_runs,
            "total_resolved": self.total_resolved,
            "total_uploads": self.total_uploads,
            "total_errors": self.total_errors,
            "errors_by_type": dict(self.errors_by_type),
            "error_rate": round(self.total_errors / max(self.total_runs, 1), 3),
            "avg_latency_ms": (
                round(self.total_latency_ms / self.total_resolved) if self.total_resolved else 0
            ),
        }


_metrics = WorkflowMetrics()


def get_workflow_metrics() -> WorkflowMetrics:
    """Return the singleton metrics collector."""
    return _metrics


# ---------------------------------------------------------------------------
# Workflow
# ---------------------------------------------------------------------------


class TourWorkflow:
    def __init__(
        self,
        client: WorldLabsClient,
        settings: Settings,
        *,
        poll_interval: float | None = None,
        poll_timeout: float | None = None,
        enrich: bool | None = None,
        on_state: Callable[[WorkflowState], None] | None = None,
        on_progress: ProgressCallback | None = None,
        metrics: WorkflowMetrics | None = None,
    ) -> None:
        self.settings = settings
        self.uploader = MediaUploader(client)
        self.submitter = JobSubmitter(client, settings)
        self.poller = JobPoller(
            client,
            interval=settings.POLL_INTERVAL if poll_interval is None else poll_interval,
            timeout=settings.POLL_TIMEOUT if poll_timeout is None else poll_timeout,
        )
        self.resolver = ResultResolver(
            client,
            platform_host=settings.WORLDLABS_PLATFORM_HOST,
            enrich=settings.ENRICH_WORLD_URL if enrich is None else enrich,
        )
        self.state = WorkflowState.IDLE
        self.request: GenerationRequest | None = None
        self.handle: JobHandle | None = None
        self._on_state = on_state
        self._on_progress = on_progress
        self._metrics = metrics or _metrics

    @property
    def progress(self) -> int:
        return self.poller.progress

    def _set_state(self, state: WorkflowState) -> None:
        if state == self.state:
            return
        if self.state.terminal:
            raise TourGenError(f"Workflow already {self.state.value}, cannot move to {state.value}")
        logger.debug("Workflow %s → %s", self.state.value, state.value)
        self.state = state
        if self._on_state is not None:
            self._on_state(state)

    def _fail(self, error: Exception) -> None:
        if isinstance(error, GenerationTimedOut):
            state = WorkflowState.TIMED_OUT
        elif isinstance(error, Cancelled):
            state = WorkflowState.CANCELLED
        else:
            state = WorkflowState.FAILED
        if not self.state.terminal:
            self._set_state(state)
        self._metrics.record_error(error, self.handle.operation_id if self.handle else None)

    # --- Uploading ---

    async def _to_reference(self, item: MediaInput) -> MediaReference:
        if isinstance(item, MediaReference):
            return item
        if isinstance(item, str) and is_remote(item):
            return MediaReference(url=item)
        self._set_state(WorkflowState.UPLOADING)
        self._metrics.total_uploads += 1
        if isinstance(item, MediaSource):
            return await self.uploader.upload_source(item)
        return await self.uploader.upload_file(item)

    async def build_prompt(self, inputs: PromptInput) -> Any:
        """Upload whatever needs uploading and return the prompt descriptor."""
        kind = inputs.kind
        if kind == PromptKind.TEXT:
            return TextPrompt(text=inputs.text or "")

        if not inputs.media:
            raise ValueError(f"{kind.value} prompt needs at least one media input")

        if kind == PromptKind.MULTI_IMAGE:
            images = []
            for i, item in enumerate(inputs.media):
                ref = await self._to_reference(item)
                direction = inputs.directions[i] if i < len(inputs.directions) else None
                images.append(ImageInput(media=ref, direction=direction))
                logger.info("Prepared image %d/%d", i + 1, len(inputs.media))
            return MultiImagePrompt(images=images)

        ref = await self._to_reference(inputs.media[0])
        if kind == PromptKind.IMAGE:
            return ImagePrompt(media=ref)
        if kind == PromptKind.VIDEO:
            return VideoPrompt(media=ref)
        return PanoramaPrompt(media=ref)

    # --- Public API ---

    async def start(
        self,
        inputs: PromptInput,
        *,
        display_name: str = "",
        model_tier: ModelTier = ModelTier.STANDARD,
    ) -> JobHandle:
        """Upload (if needed) and submit. Returns the job handle without polling."""
        self._metrics.total_runs += 1
        try:
            prompt = await self.build_prompt(inputs)
            request = GenerationRequest(
                prompt=prompt, display_name=display_name, model_tier=model_tier
            )
            return await self.submit(request)
        except Exception as e:
            self._fail(e)
            raise

    async def submit(self, request: GenerationRequest) -> JobHandle:
        self._set_state(WorkflowState.SUBMITTING)
        self.request = request
        self.handle = await self.submitter.submit(request)
        self._metrics.record_submitted(self.handle.operation_id)
        return self.handle

    async def complete(
        self,
        handle: JobHandle,
        *,
        display_name: str,
        model_tier: ModelTier = ModelTier.STANDARD,
        cancel: asyncio.Event | None = None,
    ) -> TourResult:
        """Poll an already-submitted job and resolve it into a TourResult."""
        self.handle = handle
        self._set_state(WorkflowState.POLLING)
        try:
            status = await self.poller.poll(handle, on_progress=self._on_progress, cancel=cancel)
        except Exception as e:
            self._fail(e)
            raise
        return await self.finish(status, display_name=display_name, model_tier=model_tier)

    async def finish(
        self,
        status: JobStatus,
        *,
        display_name: str,
        model_tier: ModelTier = ModelTier.STANDARD,
    ) -> TourResult:
        """Resolve a finished status into a TourResult and count the outcome."""
        if self.handle is None and status.operation_id:
            self.handle = JobHandle(operation_id=status.operation_id)
        try:
            result = await self.resolver.resolve(
                status, display_name=display_name, model_tier=model_tier
            )
        except Exception as e:
            self._fail(e)
            raise
        self._set_state(WorkflowState.RESOLVED)
        self._metrics.record_resolved(result.operation_id)
        return result

    async def run(
        self,
        inputs: PromptInput | GenerationRequest,
        *,
        display_name: str = "",
        model_tier: ModelTier = ModelTier.STANDARD,
        cancel: asyncio.Event | None = None,
    ) -> TourResult:
        """Full pipeline. Either returns a TourResult or raises; no partial success."""
        if isinstance(inputs, GenerationRequest):
            self._metrics.total_runs += 1
            try:
                handle = await self.submit(inputs)
            except Exception as e:
                self._fail(e)
                raise
        else:
            handle = await self.start(inputs, display_name=display_name, model_tier=model_tier)

        return await self.complete(
            handle,
            display_name=self.request.display_name,
            model_tier=self.request.model_tier,
            cancel=cancel,
        )


def prompt_input(
    kind: str | PromptKind,
    *,
    text: str | None = None,
    media: Sequence[MediaInput] = (),
    directions: Sequence[Direction | None] = (),
) -> PromptInput:
    return PromptInput(
        kind=PromptKind(kind), text=text, media=list(media), directions=list(directions)
    )
