"""Core domain models for the axiom curriculum and study progress."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Role = Literal["user", "model"]


@dataclass(frozen=True)
class Axiom:
    """One curriculum item."""

    id: str
    title: str
    description: str
    explanation: str = ""
    practice: str = ""


@dataclass(frozen=True)
class Level:
    """Ordered group of axioms."""

    id: int
    code: str
    name: str
    subtitle: str
    axioms: tuple[Axiom, ...]


@dataclass(frozen=True)
class Insight:
    """Dated free-text entry attached to an axiom."""

    axiom_id: str
    date: str
    text: str


@dataclass
class Progress:
    """Studied flags, notes and insights for the single local learner."""

    studied_axiom_ids: list[str] = field(default_factory=list)
    notes: dict[str, str] = field(default_factory=dict)
    insights: list[Insight] = field(default_factory=list)


@dataclass(frozen=True)
class Message:
    """One chat turn.

    `action` is optional side content for the view (for example `"select-key"`),
    and is never sent to the provider.
    """

    role: Role
    text: str
    action: str | None = None
    error_kind: str | None = None
