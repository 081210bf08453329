from __future__ import annotations

import sys
from pathlib import Path

import pytest


BACKEND_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = BACKEND_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from build_analyzer.services.build_store import BuildStore  # noqa: E402
from build_analyzer.services.hero_client import HeroRecord  # noqa: E402


class RecordingLookup:
    """Hero lookup double that answers from a fixed table and records every query."""

    def __init__(self, heroes: dict[str, HeroRecord] | None = None) -> None:
        self.heroes = dict(heroes or {})
        self.calls: list[str] = []

    def __call__(self, name: str) -> HeroRecord | None:
        self.calls.append(name)
        return self.heroes.get(name)


@pytest.fixture
def vildred() -> HeroRecord:
    return HeroRecord(
        name="Arbiter Vildred",
        role="DPS",
        fields={"id": "arbiter-vildred", "attribute": "dark"},
    )


@pytest.fixture
def store(tmp_path: Path) -> BuildStore:
    build_store = BuildStore(tmp_path / "builds.sqlite")
    build_store.ensure_schema(seed=True)
    return build_store
