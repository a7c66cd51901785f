"""Sequential unlock gating over the curriculum.

Lock status is a view concern: it is recomputed from the studied set on every
call and never stored. Un-studying an axiom re-locks whatever follows it
without touching the studied flags further down the path.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence

from .models import Level


def is_level_complete(level: Level, studied_ids: Collection[str]) -> bool:
    """Return whether every axiom in the level is studied."""
    return all(axiom.id in studied_ids for axiom in level.axioms)


def is_level_locked(levels: Sequence[Level], level_index: int, studied_ids: Collection[str]) -> bool:
    """Return whether a level is locked; only the preceding level is consulted."""
    _check_index(level_index, len(levels), "level")
    if level_index == 0:
        return False
    return not is_level_complete(levels[level_index - 1], studied_ids)


def is_axiom_locked(level: Level, axiom_index: int, studied_ids: Collection[str]) -> bool:
    """Return whether an axiom is locked by its predecessor within the level."""
    _check_index(axiom_index, len(level.axioms), "axiom")
    if axiom_index == 0:
        return False
    return level.axioms[axiom_index - 1].id not in studied_ids


def _check_index(index: int, size: int, label: str) -> None:
    if not 0 <= index < size:
        raise IndexError(f"{label} index {index} out of range (0..{size - 1})")
