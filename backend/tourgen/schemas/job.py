"""Pydantic v2 schemas for generation requests, job status and results."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, model_validator

from tourgen.schemas.prompt import PromptDescriptor, TextPrompt

DEFAULT_DISPLAY_NAME = "Property Tour"


class ModelTier(str, enum.Enum):
    """Vendor quality/cost preset."""

    STANDARD = "standard"
    DRAFT = "draft"


class GenerationRequest(BaseModel):
    """Immutable once submitted."""

    prompt: PromptDescriptor
    display_name: str = ""
    model_tier: ModelTier = ModelTier.STANDARD

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _default_name(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("display_name"):
            return data
        prompt = data.get("prompt")
        text = None
        if isinstance(prompt, TextPrompt):
            text = prompt.text
        elif isinstance(prompt, dict) and prompt.get("kind") == "text":
            text = prompt.get("text")
        return {**data, "display_name": text[:50] if text else DEFAULT_DISPLAY_NAME}


class JobHandle(BaseModel):
    operation_id: str = Field(min_length=1)

    model_config = {"frozen": True}


class JobStatus(BaseModel):
    """Parsed GET /operations/{id} payload."""

    operation_id: str | None = None
    done: bool = False
    progress_pct: int | None = Field(default=None, ge=0, le=100)
    error: Any = None
    response: dict[str, Any] | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.done and not self.error


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TourResult(BaseModel):
    """A finished, shareable 3D tour. Never mutated after creation."""

    world_id: str = Field(min_length=1)
    view_url: str
    display_name: str
    created_at: datetime = Field(default_factory=_utcnow)
    operation_id: str | None = None
    model_tier: ModelTier = ModelTier.STANDARD
    response: dict[str, Any] | None = None

    model_config = {"frozen": True}

    def to_record(self) -> dict[str, Any]:
        """JSON shape written to the tours directory and returned by the web API."""
        return {
            "name": self.display_name,
            "worldId": self.world_id,
            "viewUrl": self.view_url,
            "mode": self.model_tier.value,
            "createdAt": self.created_at.isoformat(),
            "operationId": self.operation_id,
            "response": self.response,
        }
