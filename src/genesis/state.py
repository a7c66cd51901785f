"""In-memory progress container with an explicit mutation API."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from .models import Insight, Progress

Subscriber = Callable[[Progress], None]
Clock = Callable[[], datetime]

DEFAULT_DATE_FORMAT = "%d.%m.%Y"


class ProgressState:
    """Holds the learner's progress and notifies subscribers after each mutation."""

    def __init__(
        self,
        progress: Progress | None = None,
        *,
        date_format: str = DEFAULT_DATE_FORMAT,
        clock: Clock = datetime.now,
    ) -> None:
        """Initialize with rehydrated progress (or empty)."""
        self._progress = progress if progress is not None else Progress()
        self._subscribers: list[Subscriber] = []
        self._date_format = date_format
        self._clock = clock

    @property
    def progress(self) -> Progress:
        """Current progress value."""
        return self._progress

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a callback run after every mutation; returns an unsubscribe function."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def is_studied(self, axiom_id: str) -> bool:
        """Return whether an axiom is marked studied."""
        return axiom_id in self._progress.studied_axiom_ids

    def toggle_studied(self, axiom_id: str) -> bool:
        """Flip studied membership and return the new flag."""
        studied = self._progress.studied_axiom_ids
        if axiom_id in studied:
            studied.remove(axiom_id)
            now_studied = False
        else:
            studied.append(axiom_id)
            now_studied = True
        self._notify()
        return now_studied

    def update_note(self, axiom_id: str, text: str) -> None:
        """Replace the note for an axiom; empty text is kept as an empty note."""
        self._progress.notes[axiom_id] = text
        self._notify()

    def add_insight(self, axiom_id: str, text: str) -> Insight | None:
        """Append a dated insight unless text is blank."""
        if not text.strip():
            return None
        insight = Insight(axiom_id=axiom_id, date=self._clock().strftime(self._date_format), text=text)
        self._progress.insights.append(insight)
        self._notify()
        return insight

    def _notify(self) -> None:
        for subscriber in list(self._subscribers):
            subscriber(self._progress)
