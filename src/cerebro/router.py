"""
Router module for Cerebro.

Routes normalized captures to storage: goals to the goals table (plus a
history entry), everything else to entries.
"""

import logging
from datetime import date, timedelta
from typing import Any

from cerebro.db import Database
from cerebro.models import CaptureResult, NormalizedCapture, Session

logger = logging.getLogger(__name__)

DEFAULT_GOAL_EMOJI = "🎯"
DEFAULT_GOAL_TARGET = 1
DEFAULT_GOAL_UNIT = "unidade"


def compute_period_start(period_type: str, today: date) -> date:
    """
    First day of the period containing today.

    Weeks start on Monday; daily periods start today.
    """
    if period_type == "weekly":
        return today - timedelta(days=today.weekday())
    if period_type == "monthly":
        return today.replace(day=1)
    return today


def build_entry_row(
    capture: NormalizedCapture,
    session: Session,
    category_id: int | None,
) -> dict[str, Any]:
    """Columns for a regular entry."""
    return {
        "user_id": session.user_id,
        "content": capture.content,
        "category_id": category_id,
        "entry_type": capture.entry_type,
        "status": capture.status,
        "priority": capture.priority,
        "due_date": capture.due_date,
        "tags": capture.tags,
        "checklist": [item.model_dump() for item in capture.checklist],
        "metadata": capture.metadata.model_dump(),
    }


def build_goal_rows(
    capture: NormalizedCapture,
    session: Session,
    today: date,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Columns for a goal and its companion history entry."""
    metadata = capture.metadata
    goal = {
        "user_id": session.user_id,
        "title": metadata.summary or capture.content,
        "emoji": metadata.emoji or DEFAULT_GOAL_EMOJI,
        "target": metadata.target or DEFAULT_GOAL_TARGET,
        "unit": metadata.unit or DEFAULT_GOAL_UNIT,
        "period_type": capture.period_type,
        "period_start": compute_period_start(capture.period_type, today).isoformat(),
        "current": 0,
        "category": capture.category_slug,
    }

    history_metadata = metadata.model_copy(update={"is_goal_trigger": True})
    history_entry = {
        "user_id": session.user_id,
        "content": capture.content,
        "category_id": None,
        "entry_type": "task",
        "status": "pending",
        "priority": capture.priority,
        "due_date": capture.due_date,
        "tags": capture.tags,
        "checklist": [item.model_dump() for item in capture.checklist],
        "metadata": history_metadata.model_dump(),
    }
    return goal, history_entry


class Router:
    """Routes normalized captures to the right table."""

    def __init__(self, db: Database | None = None):
        self.db = db or Database()

    def route(
        self,
        capture: NormalizedCapture,
        session: Session,
        today: date | None = None,
    ) -> CaptureResult:
        """
        Persist a normalized capture.

        Raises PersistenceError if storage rejects the row; nothing is retried.
        """
        if capture.entry_type == "goal":
            return self._route_goal(capture, session, today or date.today())
        return self._route_entry(capture, session)

    def _route_goal(self, capture: NormalizedCapture, session: Session, today: date) -> CaptureResult:
        goal, history_entry = build_goal_rows(capture, session, today)
        goal_row, entry_row = self.db.insert_goal(goal, history_entry)

        logger.info("Routed capture to goal %s (%s)", goal_row["id"], goal_row["period_type"])
        return CaptureResult(
            kind="goal",
            record=goal_row,
            history_entry=entry_row,
            category_name=capture.category_slug,
            ai_failed=not capture.classified,
            normalized=capture,
        )

    def _route_entry(self, capture: NormalizedCapture, session: Session) -> CaptureResult:
        # Unknown slug leaves the entry uncategorized
        category = self.db.get_category(capture.category_slug)
        category_id = category["id"] if category else None

        entry_row = self.db.insert_entry(build_entry_row(capture, session, category_id))

        logger.info("Routed capture to entry %s (%s)", entry_row["id"], entry_row["entry_type"])
        return CaptureResult(
            kind="entry",
            record=entry_row,
            category_name=category["name"] if category else None,
            ai_failed=not capture.classified,
            normalized=capture,
        )
