"""Application service wiring curriculum, progress state and persistence."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .content_loader import load_curriculum
from .dashboard import DashboardSummary, summarize
from .models import Axiom, Insight, Level, Progress
from .progress import ProgressStore
from .state import DEFAULT_DATE_FORMAT, ProgressState
from .unlock import is_axiom_locked, is_level_complete, is_level_locked

DEFAULT_STORAGE_KEY = "genesis_progress"


@dataclass(frozen=True)
class LevelState:
    """Level status for navigation."""

    level: Level
    index: int
    locked: bool
    complete: bool
    studied: int


@dataclass(frozen=True)
class AxiomState:
    """Axiom status within its level."""

    axiom: Axiom
    index: int
    locked: bool
    studied: bool
    note: str
    insight_count: int


class StudyService:
    """Coordinates the curriculum, learner progress and its persistence."""

    def __init__(
        self,
        db_path: Path | str,
        *,
        storage_key: str = DEFAULT_STORAGE_KEY,
        date_format: str = DEFAULT_DATE_FORMAT,
        levels: list[Level] | None = None,
    ) -> None:
        """Load curriculum, rehydrate progress and persist after every mutation."""
        self.levels = levels if levels is not None else load_curriculum()
        self.store = ProgressStore(db_path)
        self.storage_key = storage_key
        self.state = ProgressState(self.store.load_progress(storage_key), date_format=date_format)
        self.state.subscribe(self._persist)
        self._axioms = {axiom.id: axiom for level in self.levels for axiom in level.axioms}

    @property
    def progress(self) -> Progress:
        """Current progress value."""
        return self.state.progress

    def _persist(self, progress: Progress) -> None:
        self.store.save_progress(self.storage_key, progress)

    def get_axiom(self, axiom_id: str) -> Axiom:
        """Return axiom by id."""
        return self._axioms[axiom_id]

    def list_level_states(self) -> list[LevelState]:
        """Return every level with its lock and completion status."""
        studied = set(self.progress.studied_axiom_ids)
        return [
            LevelState(
                level=level,
                index=index,
                locked=is_level_locked(self.levels, index, studied),
                complete=is_level_complete(level, studied),
                studied=len([axiom for axiom in level.axioms if axiom.id in studied]),
            )
            for index, level in enumerate(self.levels)
        ]

    def list_axiom_states(self, level_index: int) -> list[AxiomState]:
        """Return axioms of one level with lock/studied status."""
        level = self.levels[level_index]
        progress = self.progress
        studied = set(progress.studied_axiom_ids)
        counts: dict[str, int] = {}
        for insight in progress.insights:
            counts[insight.axiom_id] = counts.get(insight.axiom_id, 0) + 1
        return [
            AxiomState(
                axiom=axiom,
                index=index,
                locked=is_axiom_locked(level, index, studied),
                studied=axiom.id in studied,
                note=progress.notes.get(axiom.id, ""),
                insight_count=counts.get(axiom.id, 0),
            )
            for index, axiom in enumerate(level.axioms)
        ]

    def insights_for(self, axiom_id: str) -> list[Insight]:
        """Return insights recorded for one axiom in entry order."""
        return [item for item in self.progress.insights if item.axiom_id == axiom_id]

    def toggle_studied(self, axiom_id: str) -> bool:
        """Flip studied flag for a curriculum axiom."""
        self.get_axiom(axiom_id)
        return self.state.toggle_studied(axiom_id)

    def update_note(self, axiom_id: str, text: str) -> None:
        """Replace note text for a curriculum axiom."""
        self.get_axiom(axiom_id)
        self.state.update_note(axiom_id, text)

    def add_insight(self, axiom_id: str, text: str) -> Insight | None:
        """Record an insight for a curriculum axiom; blank text is ignored."""
        self.get_axiom(axiom_id)
        return self.state.add_insight(axiom_id, text)

    def dashboard(self) -> DashboardSummary:
        """Compute dashboard figures from current state."""
        return summarize(self.levels, self.progress)

    def close(self) -> None:
        """Close resources."""
        self.store.close()
