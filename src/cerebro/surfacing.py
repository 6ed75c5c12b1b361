"""
Surfacing module for Cerebro.

Plain-text views over the database: entry lists, a Kanban board, goal
progress and capture confirmations.
"""

import os
from typing import Any

from cerebro.db import Database
from cerebro.models import PRIORITIES, STATUSES, CaptureResult


# ANSI color codes
class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"

    BRIGHT_BLACK = "\033[90m"  # Gray
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"

    @classmethod
    def enabled(cls) -> bool:
        """Check if colors should be enabled."""
        if os.environ.get("NO_COLOR"):
            return False
        return True


def c(text: str, *codes: str) -> str:
    """Apply color codes to text if colors are enabled."""
    if not Colors.enabled():
        return text
    return "".join(codes) + text + Colors.RESET


TYPE_COLORS = {
    "task": Colors.BRIGHT_YELLOW,
    "note": Colors.BRIGHT_CYAN,
    "insight": Colors.BRIGHT_MAGENTA,
    "bookmark": Colors.BRIGHT_BLUE,
}

PRIORITY_COLORS = {
    "urgent": Colors.BRIGHT_RED,
    "high": Colors.YELLOW,
    "medium": Colors.BRIGHT_BLACK,
    "low": Colors.DIM,
}

STATUS_TITLES = {
    "pending": "To Do",
    "in_progress": "In Progress",
    "done": "Done",
}

PRIORITY_TITLES = {
    "urgent": "Urgent",
    "high": "High",
    "medium": "Medium",
    "low": "Low",
}

GOAL_PERIOD_LABELS = {
    "daily": "Meta Diária",
    "weekly": "Meta Semanal",
    "monthly": "Meta Mensal",
}

SHORT_ID_LENGTH = 8


def format_id(record_id: str) -> str:
    """Short form of a row ID, enough to type back into commands."""
    return record_id[:SHORT_ID_LENGTH]


def entry_title(entry: dict[str, Any]) -> str:
    """Summary if the classifier gave one, else the raw capture."""
    metadata = entry.get("metadata") or {}
    return metadata.get("summary") or entry["content"]


def format_entry_line(entry: dict[str, Any], width: int = 50) -> str:
    """One-line rendering of an entry."""
    etype = entry["entry_type"]
    parts = [
        c(format_id(entry["id"]), Colors.DIM),
        c(f"{etype:8}", TYPE_COLORS.get(etype, "")),
        entry_title(entry)[:width],
    ]
    if priority := entry.get("priority"):
        parts.append(c(f"!{priority}", PRIORITY_COLORS.get(priority, "")))
    if due := entry.get("due_date"):
        parts.append(c(f"[due:{due}]", Colors.BRIGHT_GREEN))
    checklist = entry.get("checklist") or []
    if checklist:
        done = sum(1 for item in checklist if item.get("done"))
        parts.append(c(f"[{done}/{len(checklist)}]", Colors.DIM))
    return " ".join(parts)


def format_entries(entries: list[dict[str, Any]], title: str = "Entries") -> str:
    """List of entries under a heading."""
    if not entries:
        return "No entries found."

    lines = [c(f"{title} ({len(entries)})", Colors.BOLD), ""]
    lines.extend(f"  {format_entry_line(entry)}" for entry in entries)
    return "\n".join(lines)


def get_entries_formatted(
    db: Database | None = None,
    entry_type: str | None = None,
    status: str | None = None,
    include_done: bool = False,
    limit: int = 20,
) -> str:
    """Query and format entries."""
    db = db or Database()
    entries = db.get_entries(
        entry_type=entry_type, status=status, include_done=include_done, limit=limit
    )
    title = f"{entry_type.title()}s" if entry_type else "Entries"
    return format_entries(entries, title)


def search_entries_formatted(query: str, db: Database | None = None, limit: int = 20) -> str:
    """Full-text search, formatted."""
    db = db or Database()
    entries = db.search(query, limit=limit)
    if not entries:
        return f"No entries matching '{query}'."
    return format_entries(entries, f"Search: {query}")


def format_board(entries: list[dict[str, Any]], group_by: str = "status") -> str:
    """
    Kanban board as text, one column per status or priority.

    Entries without a priority land in the medium column.
    """
    if group_by == "priority":
        columns = [(p, PRIORITY_TITLES[p]) for p in reversed(PRIORITIES)]
        key = lambda entry: entry.get("priority") or "medium"
    else:
        columns = [(s, STATUS_TITLES[s]) for s in STATUSES]
        key = lambda entry: entry["status"]

    lines = []
    for column_id, column_title in columns:
        items = [entry for entry in entries if key(entry) == column_id]
        lines.append(c(f"{column_title} ({len(items)})", Colors.BOLD))
        if not items:
            lines.append(c("  (empty)", Colors.DIM))
        for entry in items:
            lines.append(f"  {format_entry_line(entry, width=40)}")
        lines.append("")
    return "\n".join(lines).rstrip()


def get_board_formatted(db: Database | None = None, group_by: str = "status") -> str:
    """Kanban board over tasks, done column included."""
    db = db or Database()
    entries = db.get_entries(entry_type="task", include_done=True, limit=200)
    return format_board(entries, group_by)


def progress_bar(current: float, target: float, width: int = 20) -> str:
    """Text progress bar, capped at full."""
    ratio = min(current / target, 1.0) if target > 0 else 0.0
    filled = int(round(ratio * width))
    return "█" * filled + "░" * (width - filled)


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def format_goals(goals: list[dict[str, Any]]) -> str:
    """Goals with their progress bars, grouped by period."""
    if not goals:
        return "No goals yet."

    lines = []
    for period_type, label in GOAL_PERIOD_LABELS.items():
        period_goals = [goal for goal in goals if goal["period_type"] == period_type]
        if not period_goals:
            continue
        lines.append(c(label, Colors.BOLD))
        for goal in period_goals:
            bar = progress_bar(goal["current"], goal["target"])
            done = goal["current"] >= goal["target"]
            counts = f"{_number(goal['current'])}/{_number(goal['target'])} {goal['unit']}"
            lines.append(
                f"  {c(format_id(goal['id']), Colors.DIM)} {goal['emoji']} {goal['title'][:40]}"
            )
            lines.append(
                f"      {c(bar, Colors.GREEN if done else Colors.BRIGHT_BLUE)} {counts}"
                f" (since {goal['period_start']})"
            )
        lines.append("")
    return "\n".join(lines).rstrip()


def format_capture_result(result: CaptureResult) -> str:
    """Confirmation line for a finished capture."""
    if result.kind == "goal":
        label = GOAL_PERIOD_LABELS[result.record["period_type"]]
        return f"Goal created 🎯 in {label}: {result.record['title']} ({format_id(result.record['id'])})"

    entry = result.record
    where = result.category_name or "Inbox"
    return f"Saved in {where}: {format_entry_line(entry)}"
