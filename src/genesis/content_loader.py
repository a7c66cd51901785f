"""Load the declarative curriculum from bundled JSON resources."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

from .models import Axiom, Level

CONTENT_PACKAGE = "genesis.content.levels"


def _axiom_from_dict(raw: dict[str, Any]) -> Axiom:
    """Build an axiom from raw JSON content."""
    axiom_id = str(raw.get("id", "")).strip()
    if not axiom_id:
        raise ValueError(f"Axiom '{raw.get('title', '<untitled>')}' has no id.")
    title = str(raw.get("title", "")).strip()
    if not title:
        raise ValueError(f"Axiom '{axiom_id}' has no title.")
    return Axiom(
        id=axiom_id,
        title=title,
        description=str(raw.get("description", "")),
        explanation=str(raw.get("explanation", "")),
        practice=str(raw.get("practice", "")),
    )


def _level_from_dict(raw: dict[str, Any]) -> Level:
    """Build a level from raw JSON content."""
    axioms = tuple(_axiom_from_dict(item) for item in raw.get("axioms", []))
    level_id = int(raw["id"])
    if not axioms:
        raise ValueError(f"Level {level_id} has no axioms.")
    return Level(
        id=level_id,
        code=str(raw["code"]),
        name=str(raw["name"]),
        subtitle=str(raw.get("subtitle", "")),
        axioms=axioms,
    )


def load_curriculum() -> list[Level]:
    """Load bundled levels ordered by level id."""
    raws = [
        json.loads(entry.read_text(encoding="utf-8-sig"))
        for entry in resources.files(CONTENT_PACKAGE).iterdir()
        if entry.name.endswith(".json")
    ]
    return _build_levels(raws)


def load_curriculum_from_dir(path: Path) -> list[Level]:
    """Load levels from a directory for tests/tools."""
    raws = [json.loads(file_path.read_text(encoding="utf-8-sig")) for file_path in sorted(path.glob("*.json"))]
    return _build_levels(raws)


def _build_levels(raws: list[dict[str, Any]]) -> list[Level]:
    levels: dict[int, Level] = {}
    for raw in raws:
        level = _level_from_dict(raw)
        if level.id in levels:
            raise ValueError(f"Duplicate level id: {level.id}")
        levels[level.id] = level
    ordered = [levels[key] for key in sorted(levels)]
    _validate_unique_axiom_ids(ordered)
    return ordered


def _validate_unique_axiom_ids(levels: list[Level]) -> None:
    """Validate that axiom IDs are globally unique across all levels."""
    seen: dict[str, int] = {}
    for level in levels:
        for axiom in level.axioms:
            previous = seen.get(axiom.id)
            if previous is not None:
                raise ValueError(f"Duplicate axiom id: {axiom.id} (in levels {previous} and {level.id})")
            seen[axiom.id] = level.id
