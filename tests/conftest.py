from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from genesis.config import Settings  # noqa: E402
from genesis.models import Axiom, Level  # noqa: E402

TEST_KEY = "AIzaSyTestKey0123456789"


def _level(level_id: int, code: str, name: str, axiom_ids: list[str]) -> Level:
    axioms = tuple(
        Axiom(id=axiom_id, title=f"Title {axiom_id}", description=f"About {axiom_id}") for axiom_id in axiom_ids
    )
    return Level(id=level_id, code=code, name=name, subtitle=f"{name} subtitle", axioms=axioms)


@pytest.fixture
def levels() -> list[Level]:
    """Three-level curriculum with 10 axioms in total."""
    return [
        _level(1, "I", "PRESENCE", ["A1", "A2", "A3"]),
        _level(2, "II", "ATTENTION", ["B1", "B2"]),
        _level(3, "X", "PARADOX", ["C1", "C2", "C3", "C4", "C5"]),
    ]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        GEMINI_API_KEY=TEST_KEY,
        API_KEY=None,
        GENESIS_DATA_DIR=tmp_path,
        GENESIS_TIER_FALLBACK=False,
    )


class FakeModels:
    """Stands in for `client.aio.models`; outcomes are reply texts or exceptions."""

    def __init__(self, outcomes: list[Any]) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, *, model: str, contents: Any, config: Any) -> Any:
        self.calls.append({"model": model, "contents": contents, "config": config})
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return SimpleNamespace(text=outcome)


class FakeGenai:
    """Client factory recording the keys it was built with and how many clients were closed."""

    def __init__(self, outcomes: list[Any]) -> None:
        self.models = FakeModels(outcomes)
        self.keys: list[str] = []
        self.closed = 0

    async def _aclose(self) -> None:
        self.closed += 1

    def __call__(self, api_key: str) -> Any:
        self.keys.append(api_key)
        return SimpleNamespace(aio=SimpleNamespace(models=self.models, aclose=self._aclose))


@pytest.fixture
def fake_genai() -> type[FakeGenai]:
    return FakeGenai
