from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path

logger = logging.getLogger("build_analyzer.build_store")

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS builds (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    hero_name TEXT NOT NULL,
    role TEXT,
    set_recommended TEXT,
    substats TEXT,
    weapon_recommended TEXT,
    notes TEXT,
    UNIQUE (hero_name, set_recommended)
);
"""


class BuildStoreError(Exception):
    """Raised when the recommendation store cannot be read or written."""


class DuplicateBuildError(BuildStoreError):
    """Raised when a build for the same hero and gear set already exists."""


@dataclass(frozen=True)
class BuildRecommendation:
    hero_name: str
    role: str | None = None
    gear_set: str | None = None
    substats: str | None = None
    weapon: str | None = None
    notes: str | None = None
    id: int | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "heroName": self.hero_name,
            "role": self.role,
            "gearSet": self.gear_set,
            "substats": self.substats,
            "weapon": self.weapon,
            "notes": self.notes,
        }


SEED_BUILDS: tuple[BuildRecommendation, ...] = (
    BuildRecommendation(
        hero_name="Arbiter Vildred",
        role="DPS",
        gear_set="Speed / Crit dmg",
        substats="Speed > Crit Rate > Crit Damage",
        weapon="Kise's Blade",
        notes="Meta DPS build focused on speed and crit.",
    ),
    BuildRecommendation(
        hero_name="Angelica",
        role="Healer",
        gear_set="Speed / Lifesteal",
        substats="Speed > HP > RES",
        weapon="Staff of Healing",
        notes="Support build with sustain.",
    ),
    BuildRecommendation(
        hero_name="Seaside Bellona",
        role="DPS",
        gear_set="ATK / Crit dmg",
        substats="ATK > Crit Damage > Crit Rate",
        weapon="Bellona's Spear",
        notes="High ATK and Crit Damage DPS.",
    ),
)

_INSERT_SQL = (
    "INSERT INTO builds "
    "(hero_name, role, set_recommended, substats, weapon_recommended, notes) "
    "VALUES (?, ?, ?, ?, ?, ?)"
)


def _row_to_build(row: sqlite3.Row) -> BuildRecommendation:
    return BuildRecommendation(
        id=int(row["id"]),
        hero_name=str(row["hero_name"]),
        role=row["role"],
        gear_set=row["set_recommended"],
        substats=row["substats"],
        weapon=row["weapon_recommended"],
        notes=row["notes"],
    )


def _insert_params(build: BuildRecommendation) -> tuple[str | None, ...]:
    return (
        build.hero_name,
        build.role,
        build.gear_set,
        build.substats,
        build.weapon,
        build.notes,
    )


class BuildStore:
    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def ensure_schema(self, seed: bool = True) -> None:
        try:
            with self._connect() as conn:
                conn.executescript(SCHEMA_SQL)
                count = conn.execute("SELECT COUNT(*) FROM builds").fetchone()[0]
                if seed and count == 0:
                    conn.executemany(_INSERT_SQL, [_insert_params(b) for b in SEED_BUILDS])
                    logger.info("build store seeded: builds=%d", len(SEED_BUILDS))
        except (sqlite3.Error, OSError) as exc:
            raise BuildStoreError(f"failed to initialise build store: {exc}") from exc

    def count(self) -> int:
        try:
            with self._connect() as conn:
                return int(conn.execute("SELECT COUNT(*) FROM builds").fetchone()[0])
        except (sqlite3.Error, OSError) as exc:
            raise BuildStoreError(f"failed to count builds: {exc}") from exc

    def find_by_hero_name(self, hero_name: str | None) -> list[BuildRecommendation]:
        name = str(hero_name or "").strip()
        if not name:
            return []
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM builds WHERE hero_name = ? ORDER BY id",
                    (name,),
                ).fetchall()
        except (sqlite3.Error, OSError) as exc:
            raise BuildStoreError(f"failed to read builds for {name!r}: {exc}") from exc
        return [_row_to_build(row) for row in rows]

    def add(self, build: BuildRecommendation) -> BuildRecommendation:
        try:
            with self._connect() as conn:
                cursor = conn.execute(_INSERT_SQL, _insert_params(build))
                new_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise DuplicateBuildError(
                f"build already exists for {build.hero_name!r} / {build.gear_set!r}"
            ) from exc
        except (sqlite3.Error, OSError) as exc:
            raise BuildStoreError(f"failed to add build: {exc}") from exc
        logger.info("build added id=%s hero=%r", new_id, build.hero_name)
        return replace(build, id=new_id)
