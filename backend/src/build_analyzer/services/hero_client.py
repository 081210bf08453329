from __future__ import annotations

import json
import logging
import socket
from collections.abc import Mapping
from dataclasses import dataclass, field
from http.client import HTTPException
from types import MappingProxyType
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import quote
from urllib.request import Request, urlopen

from rapidfuzz import fuzz

DEFAULT_HERO_API_URL = "https://api.epic7db.com"
DEFAULT_TIMEOUT_SECONDS = 8.0
_USER_AGENT = "Mozilla/5.0 (build-analyzer)"

logger = logging.getLogger("build_analyzer.hero_client")


class HeroLookupError(Exception):
    """Raised when a hero lookup cannot be fetched or parsed."""


@dataclass(frozen=True)
class HeroRecord:
    name: str
    role: str | None = None
    fields: Mapping[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def to_dict(self) -> dict[str, Any]:
        out = dict(self.fields)
        out["name"] = self.name
        out["role"] = self.role
        return out


def _record_from_item(raw: object) -> HeroRecord | None:
    if not isinstance(raw, dict):
        return None
    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        return None
    role = raw.get("role")
    role_text = str(role).strip() if role is not None else ""
    extra = {key: value for key, value in raw.items() if key not in ("name", "role")}
    return HeroRecord(name=name.strip(), role=role_text or None, fields=extra)


def _pick_best(items: list[object], query: str) -> HeroRecord | None:
    records = [record for record in map(_record_from_item, items) if record is not None]
    if not records:
        return None
    needle = query.strip().lower()
    if len(records) == 1 or not needle:
        return records[0]

    best = records[0]
    best_score = fuzz.WRatio(needle, best.name.lower())
    for record in records[1:]:
        score = fuzz.WRatio(needle, record.name.lower())
        if score > best_score:
            best, best_score = record, score
    return best


def normalize_hero_payload(payload: object, query: str = "") -> HeroRecord | None:
    """Collapse the lookup service's response shapes into one optional record.

    Accepts a bare list, a ``{"results": [...]}`` envelope or a single object
    carrying a ``name``.
    """
    if isinstance(payload, list):
        return _pick_best(payload, query)
    if isinstance(payload, dict):
        results = payload.get("results")
        if isinstance(results, list) and results:
            return _pick_best(results, query)
        if payload.get("name"):
            return _record_from_item(payload)
    return None


def _fetch_remote(name: str, base_url: str, timeout_seconds: float) -> object:
    url = f"{base_url.rstrip('/')}/hero?name={quote(name)}"
    request = Request(url, headers={"User-Agent": _USER_AGENT})
    try:
        with urlopen(request, timeout=timeout_seconds) as response:
            status = getattr(response, "status", None) or response.getcode()
            if status != 200:
                raise HeroLookupError(f"hero api returned non-200 status: {status}")

            try:
                return json.load(response)
            except ValueError as exc:
                # Covers JSONDecodeError and non-UTF-8 bodies (UnicodeDecodeError).
                raise HeroLookupError("failed to parse hero api JSON payload") from exc
    except HTTPError as exc:
        raise HeroLookupError(f"hero api returned HTTP error: {exc.code}") from exc
    except URLError as exc:
        raise HeroLookupError(f"failed to reach hero api: {exc.reason}") from exc
    except socket.timeout as exc:
        raise HeroLookupError("request to hero api timed out") from exc
    except TimeoutError as exc:
        raise HeroLookupError("request to hero api timed out") from exc
    except (OSError, HTTPException) as exc:
        raise HeroLookupError(f"hero api connection failed: {exc!r}") from exc


def search_hero_by_name(
    name: str,
    *,
    base_url: str = DEFAULT_HERO_API_URL,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> HeroRecord | None:
    query = str(name or "").strip()
    if not query:
        return None

    try:
        payload = _fetch_remote(query, base_url=base_url, timeout_seconds=timeout_seconds)
    except HeroLookupError as exc:
        logger.warning("hero lookup failed name=%r: %s", query, exc)
        return None

    return normalize_hero_payload(payload, query)
