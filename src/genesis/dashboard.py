"""Read-side aggregation for the progress dashboard."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .models import Axiom, Insight, Level, Progress
from .unlock import is_level_complete


@dataclass(frozen=True)
class LevelProgress:
    """Per-level completion counts for the level map."""

    level_id: int
    code: str
    name: str
    studied: int
    total: int
    stage: str


@dataclass(frozen=True)
class JournalEntry:
    """An axiom with its note and insights."""

    axiom: Axiom
    level_code: str
    note: str
    insights: tuple[Insight, ...]


@dataclass(frozen=True)
class DashboardSummary:
    """Everything the dashboard view renders."""

    percent: int
    studied: int
    total: int
    completed_levels: tuple[Level, ...]
    levels: tuple[LevelProgress, ...]
    recent_insights: tuple[Insight, ...]
    journal: tuple[JournalEntry, ...]


def total_axioms(levels: Sequence[Level]) -> int:
    """Count all axioms in the curriculum."""
    return sum(len(level.axioms) for level in levels)


def studied_count(levels: Sequence[Level], progress: Progress) -> int:
    """Count studied axioms that belong to the curriculum."""
    studied = set(progress.studied_axiom_ids)
    return sum(1 for level in levels for axiom in level.axioms if axiom.id in studied)


def completion_percent(levels: Sequence[Level], progress: Progress) -> int:
    """Return overall completion as a rounded percentage."""
    total = total_axioms(levels)
    if total == 0:
        return 0
    return round(100 * studied_count(levels, progress) / total)


def completed_levels(levels: Sequence[Level], progress: Progress) -> list[Level]:
    """Return levels whose axioms are all studied."""
    studied = set(progress.studied_axiom_ids)
    return [level for level in levels if is_level_complete(level, studied)]


def level_progress(levels: Sequence[Level], progress: Progress) -> list[LevelProgress]:
    """Return studied/total counts per level."""
    studied = set(progress.studied_axiom_ids)
    rows: list[LevelProgress] = []
    for level in levels:
        count = len([axiom for axiom in level.axioms if axiom.id in studied])
        total = len(level.axioms)
        stage = "done" if count == total else ("started" if count > 0 else "untouched")
        rows.append(
            LevelProgress(level_id=level.id, code=level.code, name=level.name, studied=count, total=total, stage=stage)
        )
    return rows


def recent_insights(progress: Progress, newest_first: bool = True) -> list[Insight]:
    """Return insights in entry order, newest first by default."""
    items = list(progress.insights)
    if newest_first:
        items.reverse()
    return items


def journal(levels: Sequence[Level], progress: Progress, newest_first: bool = False) -> list[JournalEntry]:
    """Return axioms that carry a note or insights, oldest first.

    Insights are ordered by entry. Notes carry no timestamp, so note-only axioms
    follow in the order their notes were first written.
    """
    placement = {axiom.id: (axiom, level.code) for level in levels for axiom in level.axioms}
    by_axiom: dict[str, list[Insight]] = {}
    for insight in progress.insights:
        by_axiom.setdefault(insight.axiom_id, []).append(insight)
    order = list(by_axiom)
    order.extend(axiom_id for axiom_id, note in progress.notes.items() if note and axiom_id not in by_axiom)

    entries: list[JournalEntry] = []
    for axiom_id in order:
        if axiom_id not in placement:
            continue
        axiom, level_code = placement[axiom_id]
        entries.append(
            JournalEntry(
                axiom=axiom,
                level_code=level_code,
                note=progress.notes.get(axiom_id, ""),
                insights=tuple(by_axiom.get(axiom_id, [])),
            )
        )
    if newest_first:
        entries.reverse()
    return entries


def summarize(levels: Sequence[Level], progress: Progress) -> DashboardSummary:
    """Compute the full dashboard from source state."""
    return DashboardSummary(
        percent=completion_percent(levels, progress),
        studied=studied_count(levels, progress),
        total=total_axioms(levels),
        completed_levels=tuple(completed_levels(levels, progress)),
        levels=tuple(level_progress(levels, progress)),
        recent_insights=tuple(recent_insights(progress)),
        journal=tuple(journal(levels, progress)),
    )
