from __future__ import annotations

import itertools

import pytest

from build_analyzer.services.build_evaluator import (  # type: ignore[import-not-found]
    CRIT_RATE_ADVICE,
    SPEED_ADVICE,
    ScoringConfig,
    evaluate,
)
from build_analyzer.services.hero_client import HeroRecord  # type: ignore[import-not-found]
from build_analyzer.services.stat_extractor import StatSet  # type: ignore[import-not-found]


def _maxed() -> StatSet:
    return StatSet(speed=195, attack=4000, crit_rate=160, crit_damage=210)


def test_maxed_build_scores_ten(vildred: HeroRecord) -> None:
    result = evaluate(_maxed(), hero=vildred)

    assert result.score == 10.0
    assert result.reasons == (
        "High SPD: 195",
        "High Crit Rate: 160",
        "High Crit Damage: 210",
        "High ATK: 4000",
    )
    assert result.suggestions == ("Hero role: DPS",)


def test_empty_stats_score_zero_with_both_advice_lines() -> None:
    result = evaluate(StatSet())

    assert result.score == 0.0
    assert result.reasons == ("Low SPD: N/A", "Low Crit Rate: N/A")
    assert result.suggestions == (SPEED_ADVICE, CRIT_RATE_ADVICE)


def test_decent_speed_only() -> None:
    result = evaluate(StatSet(speed=160))

    assert result.score == 2.0
    assert result.reasons == ("Decent SPD: 160", "Low Crit Rate: N/A")
    assert result.suggestions == (CRIT_RATE_ADVICE,)


@pytest.mark.parametrize(
    ("speed", "reason", "score"),
    [
        (179, "Decent SPD: 179", 2.0),
        (180, "High SPD: 180", 3.5),
        (150, "Decent SPD: 150", 2.0),
        (149, "Low SPD: 149", 0.0),
    ],
)
def test_speed_bucket_boundaries(speed: int, reason: str, score: float) -> None:
    result = evaluate(StatSet(speed=speed))

    assert result.reasons[0] == reason
    assert result.score == score


def test_low_values_are_reported_with_their_value() -> None:
    result = evaluate(StatSet(speed=120, crit_rate=80, crit_damage=150, attack=2000))

    assert result.reasons == ("Low SPD: 120", "Low Crit Rate: 80")
    assert result.score == 0.0


def test_zero_is_reported_as_value_not_missing() -> None:
    result = evaluate(StatSet(speed=0, crit_rate=0))

    assert result.reasons == ("Low SPD: 0", "Low Crit Rate: 0")


def test_weapon_is_informational() -> None:
    result = evaluate(StatSet(speed=160), weapon="Kise's Blade")

    assert result.reasons[-1] == "Detected weapon: Kise's Blade"
    assert result.score == 2.0


def test_hero_without_role_adds_no_role_line() -> None:
    result = evaluate(_maxed(), hero=HeroRecord(name="Angelica"))

    assert result.suggestions == ()


def test_suggestion_order_is_role_speed_crit() -> None:
    result = evaluate(StatSet(), hero=HeroRecord(name="Angelica", role="Healer"))

    assert result.suggestions == ("Hero role: Healer", SPEED_ADVICE, CRIT_RATE_ADVICE)


def test_custom_config_changes_thresholds_and_clamps() -> None:
    config = ScoringConfig(speed_high=100, speed_high_points=500, max_raw_points=100)

    result = evaluate(StatSet(speed=120), config=config)

    assert result.reasons[0] == "High SPD: 120"
    assert result.score == 10.0


def test_score_bounds_and_exclusive_buckets_over_grid() -> None:
    values = (None, 0, 149, 150, 179, 180, 200, 999)
    attacks = (None, 3499, 3500)
    for speed, crit_rate, crit_damage, attack in itertools.product(
        values, values, values, attacks
    ):
        stats = StatSet(speed=speed, attack=attack, crit_rate=crit_rate, crit_damage=crit_damage)
        result = evaluate(stats)

        assert 0.0 <= result.score <= 10.0
        assert round(result.score, 1) == result.score
        assert sum(r.endswith(f"SPD: {speed if speed is not None else 'N/A'}") for r in result.reasons) == 1
        assert sum("Crit Rate:" in r for r in result.reasons) == 1
        assert evaluate(stats) == result
