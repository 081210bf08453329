from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable

from .hero_client import HeroLookupError, HeroRecord

DEFAULT_MAX_FALLBACK_TOKENS = 50
FALLBACK_TOKEN_MIN_LENGTH = 4

_TOKEN_SPLIT_PATTERN = re.compile(r"[^A-Za-z']+")

logger = logging.getLogger("build_analyzer.hero_resolver")

HeroLookup = Callable[[str], HeroRecord | None]


def fallback_tokens(text: str, limit: int = DEFAULT_MAX_FALLBACK_TOKENS) -> list[str]:
    if limit <= 0 or not text:
        return []

    tokens: list[str] = []
    seen: set[str] = set()
    for token in _TOKEN_SPLIT_PATTERN.split(text):
        if len(token) < FALLBACK_TOKEN_MIN_LENGTH or token in seen:
            continue
        seen.add(token)
        tokens.append(token)
        if len(tokens) >= limit:
            break
    return tokens


def _first_match(names: Iterable[str], lookup: HeroLookup, stage: str) -> HeroRecord | None:
    for name in names:
        try:
            record = lookup(name)
        except HeroLookupError as exc:
            logger.warning("hero lookup failed stage=%s name=%r: %s", stage, name, exc)
            continue
        if record is not None:
            logger.info("hero resolved stage=%s query=%r hero=%r", stage, name, record.name)
            return record
    return None


def resolve(
    candidates: Iterable[str],
    text: str,
    lookup: HeroLookup,
    *,
    max_fallback_tokens: int = DEFAULT_MAX_FALLBACK_TOKENS,
) -> HeroRecord | None:
    """Return the first hero the lookup recognises, or None.

    Candidate lines are tried in order. Only when all of them miss are the
    unique alphabetic tokens of the raw text tried, capped at
    ``max_fallback_tokens`` lookups.
    """
    record = _first_match(candidates, lookup, stage="candidates")
    if record is not None:
        return record

    record = _first_match(
        fallback_tokens(text, limit=max_fallback_tokens),
        lookup,
        stage="tokens",
    )
    if record is None:
        logger.info("hero not resolved")
    return record
