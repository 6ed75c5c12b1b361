"""
Data models for Cerebro.

ClassificationResult mirrors what the classifier endpoint returns and is
lenient: the model is not trusted to respect types. Everything
produced by the normalizer is strict and matches the storage CHECK
constraints.
"""

import math
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Accepted value sets. The database schema repeats these as CHECK constraints.
ENTRY_TYPES = ("task", "note", "insight", "bookmark")
CLASSIFIED_TYPES = ENTRY_TYPES + ("goal",)
STATUSES = ("pending", "in_progress", "done")
PRIORITIES = ("low", "medium", "high", "urgent")
PERIOD_TYPES = ("daily", "weekly", "monthly")

EntryType = Literal["task", "note", "insight", "bookmark"]
ClassifiedType = Literal["task", "note", "insight", "bookmark", "goal"]
Status = Literal["pending", "in_progress", "done"]
Priority = Literal["low", "medium", "high", "urgent"]
PeriodType = Literal["daily", "weekly", "monthly"]


def _optional_text(value: Any) -> str | None:
    """Coerce a loosely typed scalar to a stripped string, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None


class ChecklistItem(BaseModel):
    """A single checklist line on an entry."""

    text: str
    done: bool = False


class ClassificationMetadata(BaseModel):
    """
    Optional fields the classifier may attach to a result.

    Closed record: unknown keys are dropped, and a badly typed value is
    reduced to its empty form rather than invalidating the whole result.
    """

    model_config = ConfigDict(extra="ignore")

    summary: str | None = None
    tags: list[str] = Field(default_factory=list)
    emoji: str | None = None
    target: float | None = None
    unit: str | None = None
    period_type: str | None = None
    due_date: str | None = None
    priority: str | None = None
    checklist: list[ChecklistItem] = Field(default_factory=list)

    @field_validator("summary", "emoji", "unit", "period_type", "due_date", "priority", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [tag for tag in (_optional_text(item) for item in value) if tag]

    @field_validator("target", mode="before")
    @classmethod
    def _coerce_target(cls, value: Any) -> float | None:
        if value is None or isinstance(value, bool):
            return None
        try:
            target = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(target) or target <= 0:
            return None
        return target

    @field_validator("checklist", mode="before")
    @classmethod
    def _coerce_checklist(cls, value: Any) -> list[dict[str, Any]]:
        # The model sends either ["milk", "eggs"] or [{"text": ..., "done": ...}]
        if not isinstance(value, list):
            return []
        items = []
        for item in value:
            if isinstance(item, ChecklistItem):
                item = item.model_dump()
            if isinstance(item, dict):
                text = _optional_text(item.get("text"))
                done = item.get("done") is True
            else:
                text = _optional_text(item)
                done = False
            if text:
                items.append({"text": text, "done": done})
        return items


class ClassificationResult(BaseModel):
    """
    Structured guess returned by the classifier endpoint.

    category_slug and entry_type must be present (possibly null); anything
    else about the payload is best effort.
    """

    model_config = ConfigDict(extra="ignore")

    category_slug: str | None
    entry_type: str | None
    status: str | None = None
    metadata: ClassificationMetadata | None = None

    @field_validator("category_slug", "entry_type", "status", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str | None:
        return _optional_text(value)

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, value: Any) -> dict[str, Any] | None:
        return value if isinstance(value, dict) else None


class EntryMetadata(ClassificationMetadata):
    """Sanitized metadata persisted alongside an entry."""

    model_config = ConfigDict(extra="forbid")

    priority: Priority | None = None
    period_type: PeriodType | None = None
    is_goal_trigger: bool = False


class NormalizedCapture(BaseModel):
    """A capture reconciled with the storage schema, ready to route."""

    model_config = ConfigDict(frozen=True)

    content: str
    category_slug: str
    entry_type: ClassifiedType
    status: Status
    priority: Priority | None
    period_type: PeriodType
    due_date: str | None
    tags: list[str]
    checklist: list[ChecklistItem]
    metadata: EntryMetadata
    classified: bool


class Session(BaseModel):
    """The authenticated user a capture is saved for."""

    user_id: str
    access_token: str | None = None


class CaptureResult(BaseModel):
    """Outcome of a capture: the persisted row and how it got there."""

    kind: Literal["entry", "goal"]
    record: dict[str, Any]
    history_entry: dict[str, Any] | None = None
    category_name: str | None = None
    ai_failed: bool = False
    normalized: NormalizedCapture
