from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .build_evaluator import DEFAULT_SCORING, EvaluationResult, ScoringConfig, evaluate
from .build_store import BuildRecommendation
from .hero_client import HeroRecord
from .hero_resolver import DEFAULT_MAX_FALLBACK_TOKENS, HeroLookup, resolve
from .stat_extractor import StatSet, extract

EMPTY_FIELD = "—"

logger = logging.getLogger("build_analyzer.pipeline")

RecommendationLookup = Callable[[str], Sequence[BuildRecommendation]]


@dataclass(frozen=True)
class DetectionResult:
    hero_name: str | None
    stats: StatSet
    weapon: str | None = None
    hero: HeroRecord | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "heroName": self.hero_name,
            "stats": self.stats.to_dict(),
            "weapon": self.weapon,
            "hero": self.hero.to_dict() if self.hero is not None else None,
        }


@dataclass(frozen=True)
class AnalysisReport:
    detected: DetectionResult
    evaluation: EvaluationResult
    builds: tuple[BuildRecommendation, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "detected": self.detected.to_dict(),
            "evalResult": self.evaluation.to_dict(),
            "builds": [build.to_dict() for build in self.builds],
        }


def run(
    text: str,
    lookup: HeroLookup,
    recommendations: RecommendationLookup,
    *,
    config: ScoringConfig = DEFAULT_SCORING,
    max_fallback_tokens: int = DEFAULT_MAX_FALLBACK_TOKENS,
) -> AnalysisReport:
    """Analyze recognized screenshot text end to end.

    Missing stats, an unresolved hero or an empty recommendation list are
    ordinary outcomes. Errors raised by ``recommendations`` propagate.
    """
    started = time.perf_counter()
    if not isinstance(text, str):
        text = ""

    candidates = extract(text)
    hero = resolve(
        candidates.hero_candidates,
        text,
        lookup,
        max_fallback_tokens=max_fallback_tokens,
    )

    if hero is not None:
        hero_name: str | None = hero.name
    elif candidates.hero_candidates:
        hero_name = candidates.hero_candidates[0]
    else:
        hero_name = None

    detected = DetectionResult(
        hero_name=hero_name,
        stats=candidates.stats,
        weapon=candidates.weapon,
        hero=hero,
    )
    evaluation = evaluate(detected.stats, detected.weapon, detected.hero, config=config)
    builds = tuple(recommendations(hero_name)) if hero_name else ()

    logger.info(
        "analysis finished hero=%r resolved=%s score=%.1f builds=%d duration_ms=%.2f",
        hero_name,
        hero is not None,
        evaluation.score,
        len(builds),
        (time.perf_counter() - started) * 1000.0,
    )
    return AnalysisReport(detected=detected, evaluation=evaluation, builds=builds)


def _format_build(build: BuildRecommendation) -> str:
    line = f"{build.gear_set or EMPTY_FIELD} — {build.substats or EMPTY_FIELD}"
    if build.weapon:
        line += f" — {build.weapon}"
    return line


def format_report(report: AnalysisReport) -> str:
    evaluation = report.evaluation
    sections = [
        report.detected.hero_name or "Hero not detected",
        f"Score: {evaluation.score}/10",
        "Reasons:\n" + ("\n".join(evaluation.reasons) or EMPTY_FIELD),
        "Suggestions:\n" + ("\n".join(evaluation.suggestions) or EMPTY_FIELD),
        "Recommended Builds:\n"
        + ("\n".join(_format_build(b) for b in report.builds) or "No builds found."),
    ]
    return "\n\n".join(sections)
