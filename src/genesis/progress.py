"""SQLite key-value persistence for the study progress blob."""

from __future__ import annotations

import json
import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import cast

import structlog

from .models import Insight, Progress

SCHEMA_VERSION = 1

logger = structlog.get_logger(__name__)


class ProgressStore:
    """Key-value store holding one serialized progress blob per key."""

    def __init__(self, db_path: Path | str) -> None:
        """Initialize database and schema."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        """Create the key-value table and stamp the schema version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)
            self._conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    def get(self, key: str) -> str | None:
        """Return raw stored value for key."""
        row = self._conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return str(row["value"])

    def put(self, key: str, value: str) -> None:
        """Replace the stored value for key."""
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, datetime.now(UTC).isoformat()),
            )

    def load_progress(self, key: str) -> Progress:
        """Rehydrate progress; missing or unreadable blobs give empty progress."""
        raw = self.get(key)
        if raw is None:
            return Progress()
        try:
            payload: object = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("progress_blob_unreadable", key=key)
            return Progress()
        if not isinstance(payload, dict):
            logger.warning("progress_blob_unreadable", key=key, root_type=type(payload).__name__)
            return Progress()
        return progress_from_payload(cast(dict[str, object], payload))

    def save_progress(self, key: str, progress: Progress) -> None:
        """Serialize and store the full progress value."""
        self.put(key, json.dumps(progress_to_payload(progress), ensure_ascii=False))
        logger.debug(
            "progress_persisted",
            key=key,
            studied=len(progress.studied_axiom_ids),
            notes=len(progress.notes),
            insights=len(progress.insights),
        )

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()


def progress_to_payload(progress: Progress) -> dict[str, object]:
    """Return the persisted blob shape for progress."""
    return {
        "studiedAxiomIds": list(progress.studied_axiom_ids),
        "notes": dict(progress.notes),
        "insights": [{"id": item.axiom_id, "date": item.date, "text": item.text} for item in progress.insights],
    }


def progress_from_payload(raw: dict[str, object]) -> Progress:
    """Build progress from a decoded blob, skipping malformed entries."""
    studied: list[str] = []
    studied_raw = raw.get("studiedAxiomIds")
    if isinstance(studied_raw, list):
        for item in cast(list[object], studied_raw):
            if isinstance(item, str) and item not in studied:
                studied.append(item)

    notes: dict[str, str] = {}
    notes_raw = raw.get("notes")
    if isinstance(notes_raw, dict):
        for key, value in cast(dict[object, object], notes_raw).items():
            if isinstance(key, str) and isinstance(value, str):
                notes[key] = value

    insights: list[Insight] = []
    insights_raw = raw.get("insights")
    if isinstance(insights_raw, list):
        for item in cast(list[object], insights_raw):
            if not isinstance(item, dict):
                continue
            row = cast(dict[str, object], item)
            axiom_id = row.get("id")
            date = row.get("date")
            text = row.get("text")
            if isinstance(axiom_id, str) and isinstance(date, str) and isinstance(text, str):
                insights.append(Insight(axiom_id=axiom_id, date=date, text=text))

    return Progress(studied_axiom_ids=studied, notes=notes, insights=insights)
