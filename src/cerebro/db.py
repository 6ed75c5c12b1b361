"""
Database module for Cerebro.

SQLite storage with CHECK-constrained enums and FTS5 full-text search.
"""

import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

from cerebro.config import get_db_path
from cerebro.errors import PersistenceError
from cerebro.models import PRIORITIES, STATUSES

logger = logging.getLogger(__name__)

# Schema version for migrations
SCHEMA_VERSION = 1

# Categories every install starts with (slug, display name)
DEFAULT_CATEGORIES = (
    ("home", "Casa"),
    ("work", "Trabalho"),
    ("uni", "Universidade"),
    ("ideas", "Ideias"),
)

SCHEMA = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    slug TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL
);

-- Core entries table. Goals live in their own table.
CREATE TABLE IF NOT EXISTS entries (
    id TEXT PRIMARY KEY,                    -- uuid4 hex
    user_id TEXT NOT NULL,
    created_at TEXT NOT NULL,               -- ISO 8601
    updated_at TEXT NOT NULL,
    content TEXT NOT NULL,                  -- Original capture text
    category_id INTEGER REFERENCES categories(id),   -- NULL = uncategorized
    entry_type TEXT NOT NULL CHECK(entry_type IN ('task', 'note', 'insight', 'bookmark')),
    status TEXT NOT NULL DEFAULT 'pending' CHECK(status IN ('pending', 'in_progress', 'done')),
    priority TEXT CHECK(priority IN ('low', 'medium', 'high', 'urgent')),
    due_date TEXT,                          -- ISO 8601 date
    tags TEXT NOT NULL DEFAULT '[]',        -- JSON array
    checklist TEXT NOT NULL DEFAULT '[]',   -- JSON array of {text, done}
    metadata TEXT NOT NULL DEFAULT '{}'     -- JSON object
);

CREATE TABLE IF NOT EXISTS goals (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    title TEXT NOT NULL,
    emoji TEXT NOT NULL,
    target REAL NOT NULL CHECK(target > 0),
    unit TEXT NOT NULL,
    period_type TEXT NOT NULL CHECK(period_type IN ('daily', 'weekly', 'monthly')),
    period_start TEXT NOT NULL,             -- ISO 8601 date
    current REAL NOT NULL DEFAULT 0 CHECK(current >= 0),
    category TEXT
);

-- Classifier audit log
CREATE TABLE IF NOT EXISTS classifier_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    record_id TEXT,                         -- entries.id or goals.id
    timestamp TEXT NOT NULL,
    raw_input TEXT NOT NULL,
    classifier_output TEXT,                 -- Normalized JSON, NULL if unavailable
    transport TEXT NOT NULL,                -- managed, direct, unavailable
    processing_time_ms INTEGER,
    status TEXT NOT NULL,                   -- classified, fallback
    routed_to TEXT,
    error TEXT
);

-- Full-text search
CREATE VIRTUAL TABLE IF NOT EXISTS entries_fts USING fts5(
    content,
    content='entries',
    content_rowid='rowid'
);

-- Indexes
CREATE INDEX IF NOT EXISTS idx_entries_type ON entries(entry_type);
CREATE INDEX IF NOT EXISTS idx_entries_status ON entries(status);
CREATE INDEX IF NOT EXISTS idx_entries_due_date ON entries(due_date);
CREATE INDEX IF NOT EXISTS idx_entries_created ON entries(created_at);
CREATE INDEX IF NOT EXISTS idx_goals_period ON goals(period_type, period_start);

-- FTS triggers
CREATE TRIGGER IF NOT EXISTS entries_ai AFTER INSERT ON entries BEGIN
    INSERT INTO entries_fts(rowid, content) VALUES (new.rowid, new.content);
END;

CREATE TRIGGER IF NOT EXISTS entries_ad AFTER DELETE ON entries BEGIN
    INSERT INTO entries_fts(entries_fts, rowid, content) VALUES('delete', old.rowid, old.content);
END;

CREATE TRIGGER IF NOT EXISTS entries_au AFTER UPDATE ON entries BEGIN
    INSERT INTO entries_fts(entries_fts, rowid, content) VALUES('delete', old.rowid, old.content);
    INSERT INTO entries_fts(rowid, content) VALUES (new.rowid, new.content);
END;
"""

ENTRY_COLUMNS = (
    "id", "user_id", "created_at", "updated_at", "content", "category_id",
    "entry_type", "status", "priority", "due_date", "tags", "checklist", "metadata",
)

GOAL_COLUMNS = (
    "id", "user_id", "created_at", "updated_at", "title", "emoji", "target",
    "unit", "period_type", "period_start", "current", "category",
)

JSON_COLUMNS = ("tags", "checklist", "metadata")
JSON_DEFAULTS = {"tags": [], "checklist": [], "metadata": {}}


def generate_id() -> str:
    """Generate a unique row ID."""
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _entry_from_row(row: sqlite3.Row) -> dict[str, Any]:
    """Decode JSON columns of an entries row."""
    entry = dict(row)
    for column in JSON_COLUMNS:
        if column in entry and isinstance(entry[column], str):
            entry[column] = json.loads(entry[column])
    return entry


class Database:
    """SQLite database wrapper for Cerebro."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or get_db_path()
        self._ensure_db()

    def _ensure_db(self) -> None:
        """Ensure database exists, schema is current and categories are seeded."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)
            # Set schema version
            conn.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,)
            )
            conn.executemany(
                "INSERT OR IGNORE INTO categories (slug, name) VALUES (?, ?)",
                DEFAULT_CATEGORIES,
            )

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _insert(self, conn: sqlite3.Connection, table: str, columns: tuple[str, ...], row: dict[str, Any]) -> None:
        values = []
        for column in columns:
            value = row.get(column)
            if column in JSON_COLUMNS:
                value = json.dumps(value if value is not None else JSON_DEFAULTS[column])
            values.append(value)
        placeholders = ", ".join("?" for _ in columns)
        try:
            conn.execute(
                f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
                values,
            )
        except sqlite3.IntegrityError as e:
            raise PersistenceError(f"Could not save to {table}: {e}", table=table) from e

    # Categories

    def get_category(self, slug: str) -> dict[str, Any] | None:
        """Look up a category by slug."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT id, slug, name FROM categories WHERE slug = ?", (slug,)
            ).fetchone()
            if row:
                return dict(row)
        return None

    def get_categories(self) -> list[dict[str, Any]]:
        """All categories, in creation order."""
        with self._connect() as conn:
            rows = conn.execute("SELECT id, slug, name FROM categories ORDER BY id").fetchall()
            return [dict(row) for row in rows]

    # Inserts

    def insert_entry(self, entry: dict[str, Any]) -> dict[str, Any]:
        """Insert an entry. Returns the stored row."""
        now = _now()
        row = {"id": generate_id(), "created_at": now, "updated_at": now, **entry}

        with self._connect() as conn:
            self._insert(conn, "entries", ENTRY_COLUMNS, row)

        logger.info("Saved entry %s (%s)", row["id"], row["entry_type"])
        return self.get_entry(row["id"])

    def insert_goal(self, goal: dict[str, Any], history_entry: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        """
        Insert a goal and its companion history entry in one transaction.

        Returns (goal_row, entry_row). Neither row is written if either fails.
        """
        now = _now()
        goal_row = {"id": generate_id(), "created_at": now, "updated_at": now, "current": 0, **goal}
        entry_row = {"id": generate_id(), "created_at": now, "updated_at": now, **history_entry}

        with self._connect() as conn:
            self._insert(conn, "goals", GOAL_COLUMNS, goal_row)
            self._insert(conn, "entries", ENTRY_COLUMNS, entry_row)

        logger.info("Saved goal %s (%s)", goal_row["id"], goal_row["period_type"])
        return self.get_goal(goal_row["id"]), self.get_entry(entry_row["id"])

    def log_classification(
        self,
        record_id: str | None,
        raw_input: str,
        classifier_output: str | None,
        transport: str,
        processing_time_ms: int,
        status: str,
        routed_to: str | None = None,
        error: str | None = None,
    ) -> None:
        """Log a classification attempt for auditing."""
        with self._connect() as conn:
            conn.execute("""
                INSERT INTO classifier_logs (
                    record_id, timestamp, raw_input, classifier_output,
                    transport, processing_time_ms, status, routed_to, error
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                record_id, _now(), raw_input, classifier_output,
                transport, processing_time_ms, status, routed_to, error
            ))

    # Reads

    def get_entry(self, entry_id: str) -> dict[str, Any] | None:
        """Get a single entry by ID."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM entries WHERE id = ?", (entry_id,)
            ).fetchone()
            if row:
                return _entry_from_row(row)
        return None

    def get_entries(
        self,
        entry_type: str | None = None,
        status: str | None = None,
        limit: int = 20,
        include_done: bool = False,
    ) -> list[dict[str, Any]]:
        """Get entries with optional filters, newest first."""
        query = """
            SELECT e.*, c.slug AS category_slug, c.name AS category_name
            FROM entries e LEFT JOIN categories c ON e.category_id = c.id
            WHERE 1=1
        """
        params: list[Any] = []

        if entry_type:
            query += " AND e.entry_type = ?"
            params.append(entry_type)

        if status:
            query += " AND e.status = ?"
            params.append(status)
        elif not include_done:
            query += " AND e.status != 'done'"

        query += " ORDER BY e.created_at DESC LIMIT ?"
        params.append(limit)

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [_entry_from_row(row) for row in rows]

    def search(self, query: str, limit: int = 20) -> list[dict[str, Any]]:
        """Full-text search across entry content."""
        with self._connect() as conn:
            rows = conn.execute("""
                SELECT e.* FROM entries e
                JOIN entries_fts fts ON e.rowid = fts.rowid
                WHERE entries_fts MATCH ?
                ORDER BY rank
                LIMIT ?
            """, (query, limit)).fetchall()
            return [_entry_from_row(row) for row in rows]

    def resolve_id(self, identifier: str, table: str = "entries") -> str | None:
        """
        Resolve a full or prefix ID to the row's ID.

        Returns None when nothing matches or the prefix is ambiguous.
        """
        if table not in ("entries", "goals"):
            raise ValueError(f"Unknown table: {table}")

        identifier = identifier.strip().lower()
        if not identifier:
            return None

        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT id FROM {table} WHERE id LIKE ? LIMIT 2", (f"{identifier}%",)
            ).fetchall()
        if len(rows) != 1:
            return None
        return rows[0]["id"]

    def get_goal(self, goal_id: str) -> dict[str, Any] | None:
        """Get a single goal by ID."""
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM goals WHERE id = ?", (goal_id,)).fetchone()
            if row:
                return dict(row)
        return None

    def get_goals(self, period_type: str | None = None) -> list[dict[str, Any]]:
        """Get goals, most recent period first."""
        query = "SELECT * FROM goals"
        params: list[Any] = []
        if period_type:
            query += " WHERE period_type = ?"
            params.append(period_type)
        query += " ORDER BY period_start DESC, created_at DESC"

        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return [dict(row) for row in rows]

    # Updates

    def update_status(self, entry_id: str, status: str) -> bool:
        """Move an entry to another status column. Returns True if it existed."""
        if status not in STATUSES:
            raise ValueError(f"Invalid status: {status}")

        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE entries SET status = ?, updated_at = ? WHERE id = ?",
                (status, _now(), entry_id),
            )
            return cursor.rowcount > 0

    def complete_entry(self, entry_id: str) -> bool:
        """Mark an entry as done. Returns True if it was not done yet."""
        with self._connect() as conn:
            cursor = conn.execute("""
                UPDATE entries SET status = 'done', updated_at = ?
                WHERE id = ? AND status != 'done'
            """, (_now(), entry_id))
            return cursor.rowcount > 0

    def update_priority(self, entry_id: str, priority: str | None) -> bool:
        """Set priority on both the column and the stored metadata."""
        if priority is not None and priority not in PRIORITIES:
            raise ValueError(f"Invalid priority: {priority}")

        entry = self.get_entry(entry_id)
        if not entry:
            return False

        metadata = {**entry["metadata"], "priority": priority}
        with self._connect() as conn:
            conn.execute(
                "UPDATE entries SET priority = ?, metadata = ?, updated_at = ? WHERE id = ?",
                (priority, json.dumps(metadata), _now(), entry_id),
            )
        return True

    def toggle_checklist_item(self, entry_id: str, index: int) -> bool:
        """Flip the done flag of checklist item `index` (0-based)."""
        entry = self.get_entry(entry_id)
        if not entry:
            return False

        checklist = entry["checklist"]
        if not 0 <= index < len(checklist):
            raise IndexError(f"Checklist has {len(checklist)} items, no item {index + 1}")

        checklist[index]["done"] = not checklist[index].get("done", False)
        with self._connect() as conn:
            conn.execute(
                "UPDATE entries SET checklist = ?, updated_at = ? WHERE id = ?",
                (json.dumps(checklist), _now(), entry_id),
            )
        return True

    def delete_entry(self, entry_id: str) -> bool:
        """Delete an entry. Returns True if it existed."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM entries WHERE id = ?", (entry_id,))
            return cursor.rowcount > 0

    def add_goal_progress(self, goal_id: str, amount: float = 1) -> dict[str, Any] | None:
        """Add to a goal's current counter. Returns the updated goal."""
        with self._connect() as conn:
            try:
                cursor = conn.execute(
                    "UPDATE goals SET current = current + ?, updated_at = ? WHERE id = ?",
                    (amount, _now(), goal_id),
                )
            except sqlite3.IntegrityError as e:
                raise PersistenceError(f"Could not update goal: {e}", table="goals") from e
            if cursor.rowcount == 0:
                return None
        return self.get_goal(goal_id)

    def get_stats(self) -> dict[str, Any]:
        """Get database statistics."""
        with self._connect() as conn:
            total = conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]
            by_type = dict(conn.execute("""
                SELECT entry_type, COUNT(*) FROM entries GROUP BY entry_type
            """).fetchall())
            by_status = dict(conn.execute("""
                SELECT status, COUNT(*) FROM entries GROUP BY status
            """).fetchall())
            goals = conn.execute("SELECT COUNT(*) FROM goals").fetchone()[0]
            fallbacks = conn.execute(
                "SELECT COUNT(*) FROM classifier_logs WHERE status = 'fallback'"
            ).fetchone()[0]

            return {
                "total_entries": total,
                "by_type": by_type,
                "by_status": by_status,
                "total_goals": goals,
                "classifier_fallbacks": fallbacks,
            }
