"""Axioms of Being: a self-study companion with a curriculum coach."""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

__all__ = ["__version__"]

_VERSION_LINE = re.compile(r'^version\s*=\s*"([^"]+)"\s*$')


def _version_from_pyproject() -> str | None:
    """Read [project].version from a source checkout, if there is one."""
    for base in Path(__file__).resolve().parents:
        pyproject = base / "pyproject.toml"
        if not pyproject.exists():
            continue
        section = None
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped.startswith("["):
                section = stripped
                continue
            match = _VERSION_LINE.match(stripped)
            if section == "[project]" and match:
                return match.group(1)
        return None
    return None


try:
    __version__ = _version_from_pyproject() or version("genesis-axioms")
except PackageNotFoundError:
    __version__ = "0+unknown"
