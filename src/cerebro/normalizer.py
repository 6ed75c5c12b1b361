"""
Response normalizer for Cerebro.

Turns an untrusted, possibly absent classification into a record that
satisfies every CHECK constraint in the schema. Out-of-range values are
replaced with safe defaults, never rejected: a bad enum from the model must
not cost the user their capture.
"""

from datetime import date
from typing import Any

from cerebro.heuristics import is_in_progress, is_urgent
from cerebro.models import (
    CLASSIFIED_TYPES,
    PERIOD_TYPES,
    PRIORITIES,
    STATUSES,
    ClassificationMetadata,
    ClassificationResult,
    EntryMetadata,
    NormalizedCapture,
)

DEFAULT_CATEGORY = "ideas"
DEFAULT_ENTRY_TYPE = "note"
DEFAULT_STATUS = "pending"
DEFAULT_PRIORITY = "medium"
DEFAULT_PERIOD_TYPE = "weekly"


def sanitize_choice(value: str | None, allowed: tuple[str, ...], default: Any) -> Any:
    """Lowercase value and return it if allowed, else default."""
    if not value:
        return default
    lowered = value.strip().lower()
    return lowered if lowered in allowed else default


def sanitize_due_date(value: str | None) -> str | None:
    """Keep only values that parse as an ISO date; datetimes are cut to the date."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10]).isoformat()
    except ValueError:
        return None


def default_metadata(text: str) -> ClassificationMetadata:
    """Metadata used when the classifier returned nothing usable."""
    return ClassificationMetadata(summary=text, priority=DEFAULT_PRIORITY)


def normalize(text: str, classification: ClassificationResult | None) -> NormalizedCapture:
    """
    Reconcile a classification with the schema.

    Rules, in order:
    1. Missing classification or metadata gets defaults (ideas / note /
       medium priority, summary = text).
    2. Urgency keywords in the text force priority "urgent".
    3. Progress keywords in the text force status "in_progress".
    4. Enum fields are lowercased and checked against their value sets.

    Pure: the input is never mutated and equal inputs give equal outputs.
    """
    metadata = default_metadata(text)
    category_slug = None
    entry_type = None
    status = None

    if classification is not None:
        category_slug = classification.category_slug
        entry_type = classification.entry_type
        status = classification.status
        if classification.metadata is not None:
            metadata = classification.metadata

    priority = metadata.priority
    if is_urgent(text):
        priority = "urgent"

    if is_in_progress(text):
        status = "in_progress"

    final_priority = sanitize_choice(priority, PRIORITIES, None)
    final_period = sanitize_choice(metadata.period_type, PERIOD_TYPES, DEFAULT_PERIOD_TYPE)
    due_date = sanitize_due_date(metadata.due_date)

    entry_metadata = EntryMetadata(
        summary=metadata.summary,
        tags=list(metadata.tags),
        emoji=metadata.emoji,
        target=metadata.target,
        unit=metadata.unit,
        period_type=sanitize_choice(metadata.period_type, PERIOD_TYPES, None),
        due_date=due_date,
        priority=final_priority,
        checklist=[item.model_copy() for item in metadata.checklist],
    )

    return NormalizedCapture(
        content=text,
        category_slug=(category_slug or DEFAULT_CATEGORY).strip().lower(),
        entry_type=sanitize_choice(entry_type, CLASSIFIED_TYPES, DEFAULT_ENTRY_TYPE),
        status=sanitize_choice(status, STATUSES, DEFAULT_STATUS),
        priority=final_priority,
        period_type=final_period,
        due_date=due_date,
        tags=list(metadata.tags),
        checklist=[item.model_copy() for item in metadata.checklist],
        metadata=entry_metadata,
        classified=classification is not None,
    )
