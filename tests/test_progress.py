import json
import sqlite3
from pathlib import Path

from genesis.models import Insight, Progress
from genesis.progress import ProgressStore, progress_from_payload, progress_to_payload

KEY = "genesis_progress"


def test_missing_blob_loads_empty_progress() -> None:
    store = ProgressStore(":memory:")
    progress = store.load_progress(KEY)
    assert progress == Progress()


def test_reload_reproduces_persisted_blob_exactly() -> None:
    store = ProgressStore(":memory:")
    blob = {"studiedAxiomIds": ["A1"], "notes": {"A1": "x"}, "insights": []}
    store.put(KEY, json.dumps(blob))

    progress = store.load_progress(KEY)
    assert progress.studied_axiom_ids == ["A1"]
    assert progress.notes == {"A1": "x"}
    assert progress.insights == []
    assert progress_to_payload(progress) == blob


def test_save_then_load_keeps_insights_and_empty_notes() -> None:
    store = ProgressStore(":memory:")
    progress = Progress(
        studied_axiom_ids=["A2", "A1"],
        notes={"A1": "", "A2": "quiet"},
        insights=[Insight("A1", "19.10.2026", "first"), Insight("A1", "19.10.2026", "first")],
    )
    store.save_progress(KEY, progress)

    stored = json.loads(store.get(KEY) or "")
    assert stored["insights"][0] == {"id": "A1", "date": "19.10.2026", "text": "first"}
    assert store.load_progress(KEY) == progress


def test_unreadable_blob_falls_back_to_empty() -> None:
    store = ProgressStore(":memory:")
    store.put(KEY, "{not json")
    assert store.load_progress(KEY) == Progress()
    store.put(KEY, json.dumps(["A1"]))
    assert store.load_progress(KEY) == Progress()


def test_other_keys_are_independent() -> None:
    store = ProgressStore(":memory:")
    store.save_progress("old_key", Progress(studied_axiom_ids=["A1"]))
    assert store.load_progress(KEY) == Progress()


def test_malformed_entries_are_skipped() -> None:
    progress = progress_from_payload(
        {
            "studiedAxiomIds": ["A1", 7, "A1", "A2"],
            "notes": {"A1": "ok", "A2": 3},
            "insights": [{"id": "A1", "date": "d", "text": "t"}, {"id": "A2"}, "junk"],
        }
    )
    assert progress.studied_axiom_ids == ["A1", "A2"]
    assert progress.notes == {"A1": "ok"}
    assert progress.insights == [Insight("A1", "d", "t")]


def test_missing_fields_default_to_empty() -> None:
    assert progress_from_payload({}) == Progress()
    assert progress_from_payload({"studiedAxiomIds": "A1", "notes": [], "insights": {}}) == Progress()


def test_schema_creates_kv_store_and_sets_user_version() -> None:
    store = ProgressStore(":memory:")
    conn = store._conn  # noqa: SLF001
    assert int(conn.execute("PRAGMA user_version").fetchone()[0]) == 1
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name").fetchall()
    assert [row["name"] for row in rows] == ["kv_store"]


def test_reopening_keeps_existing_rows(tmp_path: Path) -> None:
    db_path = tmp_path / "progress.db"
    first = ProgressStore(db_path)
    first.put(KEY, "{}")
    first.close()
    second = ProgressStore(db_path)
    assert second.get(KEY) == "{}"
    second.close()


def test_newer_schema_version_is_rejected(tmp_path: Path) -> None:
    db_path = tmp_path / "future.db"
    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA user_version = 99")
    conn.commit()
    conn.close()

    try:
        ProgressStore(db_path)
        raise AssertionError("Expected RuntimeError for newer schema.")
    except RuntimeError as exc:
        assert "newer than supported" in str(exc)


def test_path_database_persists_between_stores(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "progress.db"
    store = ProgressStore(db_path)
    store.save_progress(KEY, Progress(studied_axiom_ids=["A1"], notes={"A1": "x"}))
    store.close()
    assert db_path.exists()

    reopened = ProgressStore(db_path)
    assert reopened.load_progress(KEY) == Progress(studied_axiom_ids=["A1"], notes={"A1": "x"})
    reopened.close()
