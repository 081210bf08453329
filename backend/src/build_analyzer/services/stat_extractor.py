from __future__ import annotations

import re
from dataclasses import dataclass

WEAPON_KEYWORDS = (
    "sword",
    "blade",
    "staff",
    "spear",
    "dagger",
    "hammer",
    "bow",
    "katana",
)
HERO_NAME_MIN_LENGTH = 4
HERO_NAME_MAX_WORDS = 3

_DIGIT_PATTERN = re.compile(r"\d")


@dataclass(frozen=True)
class StatSet:
    speed: int | None = None
    attack: int | None = None
    crit_rate: int | None = None
    crit_damage: int | None = None

    def to_dict(self) -> dict[str, int | None]:
        return {
            "speed": self.speed,
            "attack": self.attack,
            "critRate": self.crit_rate,
            "critDamage": self.crit_damage,
        }


@dataclass(frozen=True)
class DetectionCandidates:
    stats: StatSet
    hero_candidates: tuple[str, ...] = ()
    weapon: str | None = None


# (field, label, min digits, max digits). The trailing lookahead rejects a
# digit run longer than the window instead of silently truncating it.
_STAT_TABLE: tuple[tuple[str, str, int, int], ...] = (
    ("speed", r"(?:SPEED|SPD)", 2, 3),
    ("attack", r"(?:ATTACK|ATK)", 3, 5),
    ("crit_rate", r"CRIT(?:ICAL)?(?:\s*(?:RATE|CHANCE))?", 2, 3),
    ("crit_damage", r"CRIT(?:ICAL)?\s*(?:DMG|DAMAGE)", 2, 3),
)


def _compile_stat_patterns() -> tuple[tuple[str, re.Pattern[str]], ...]:
    compiled: list[tuple[str, re.Pattern[str]]] = []
    for field, label, min_digits, max_digits in _STAT_TABLE:
        pattern = re.compile(
            rf"{label}[\s:]*(\d{{{min_digits},{max_digits}}})(?!\d)",
            re.IGNORECASE,
        )
        compiled.append((field, pattern))
    return tuple(compiled)


_STAT_PATTERNS = _compile_stat_patterns()


def extract_stats(text: str) -> StatSet:
    values: dict[str, int] = {}
    for field, pattern in _STAT_PATTERNS:
        match = pattern.search(text)
        if match is None:
            continue
        values[field] = int(match.group(1))
    return StatSet(**values)


def _split_lines(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def _is_hero_name_line(line: str) -> bool:
    if len(line) < HERO_NAME_MIN_LENGTH:
        return False
    if len(line.split()) > HERO_NAME_MAX_WORDS:
        return False
    return _DIGIT_PATTERN.search(line) is None


def hero_name_candidates(text: str) -> tuple[str, ...]:
    return tuple(line for line in _split_lines(text) if _is_hero_name_line(line))


def weapon_candidate(text: str) -> str | None:
    for line in _split_lines(text):
        lowered = line.lower()
        if any(keyword in lowered for keyword in WEAPON_KEYWORDS):
            return line
    return None


def extract(text: str) -> DetectionCandidates:
    """Parse recognized screenshot text into stat, hero and weapon candidates.

    Never raises: unparseable or non-string input yields an empty candidate set.
    """
    if not isinstance(text, str):
        text = ""
    return DetectionCandidates(
        stats=extract_stats(text),
        hero_candidates=hero_name_candidates(text),
        weapon=weapon_candidate(text),
    )
