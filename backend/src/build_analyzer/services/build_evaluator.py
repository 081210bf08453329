from __future__ import annotations

from dataclasses import dataclass

from .hero_client import HeroRecord
from .stat_extractor import StatSet

SPEED_ADVICE = "Increase SPD via substats or sets."
CRIT_RATE_ADVICE = "Increase Crit Rate for consistency."
MIN_SCORE = 0.0
MAX_SCORE = 10.0


@dataclass(frozen=True)
class ScoringConfig:
    speed_high: int = 180
    speed_high_points: int = 35
    speed_decent: int = 150
    speed_decent_points: int = 20
    crit_rate_high: int = 150
    crit_rate_high_points: int = 30
    crit_damage_high: int = 200
    crit_damage_high_points: int = 20
    attack_high: int = 3500
    attack_high_points: int = 15
    max_raw_points: int = 100


DEFAULT_SCORING = ScoringConfig()


@dataclass(frozen=True)
class EvaluationResult:
    score: float
    reasons: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "score": self.score,
            "reasons": list(self.reasons),
            "suggestions": list(self.suggestions),
        }


def _display(value: int | None) -> str:
    return "N/A" if value is None else str(value)


def _normalize_score(raw_points: int, max_raw_points: int) -> float:
    if max_raw_points <= 0:
        return MIN_SCORE
    score = round(raw_points / max_raw_points * MAX_SCORE, 1)
    return min(max(score, MIN_SCORE), MAX_SCORE)


def evaluate(
    stats: StatSet,
    weapon: str | None = None,
    hero: HeroRecord | None = None,
    config: ScoringConfig = DEFAULT_SCORING,
) -> EvaluationResult:
    raw_points = 0
    reasons: list[str] = []

    speed = stats.speed
    if speed is not None and speed >= config.speed_high:
        raw_points += config.speed_high_points
        reasons.append(f"High SPD: {speed}")
    elif speed is not None and speed >= config.speed_decent:
        raw_points += config.speed_decent_points
        reasons.append(f"Decent SPD: {speed}")
    else:
        reasons.append(f"Low SPD: {_display(speed)}")

    crit_rate = stats.crit_rate
    if crit_rate is not None and crit_rate >= config.crit_rate_high:
        raw_points += config.crit_rate_high_points
        reasons.append(f"High Crit Rate: {crit_rate}")
    else:
        reasons.append(f"Low Crit Rate: {_display(crit_rate)}")

    if stats.crit_damage is not None and stats.crit_damage >= config.crit_damage_high:
        raw_points += config.crit_damage_high_points
        reasons.append(f"High Crit Damage: {stats.crit_damage}")

    if stats.attack is not None and stats.attack >= config.attack_high:
        raw_points += config.attack_high_points
        reasons.append(f"High ATK: {stats.attack}")

    if weapon:
        reasons.append(f"Detected weapon: {weapon}")

    suggestions: list[str] = []
    if hero is not None and hero.role:
        suggestions.append(f"Hero role: {hero.role}")
    if speed is None or speed < config.speed_decent:
        suggestions.append(SPEED_ADVICE)
    if crit_rate is None or crit_rate < config.crit_rate_high:
        suggestions.append(CRIT_RATE_ADVICE)

    return EvaluationResult(
        score=_normalize_score(raw_points, config.max_raw_points),
        reasons=tuple(reasons),
        suggestions=tuple(suggestions),
    )
