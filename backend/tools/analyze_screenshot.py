from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = BACKEND_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from build_analyzer.services.build_store import BuildStore, BuildStoreError  # noqa: E402
from build_analyzer.services.hero_client import (  # noqa: E402
    DEFAULT_HERO_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    search_hero_by_name,
)
from build_analyzer.services.ocr_text import (  # noqa: E402
    OcrTextError,
    inspect_ocr_runtime,
    recognize_text,
)
from build_analyzer.services.pipeline import format_report, run  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Analyze a stat-screen screenshot (or its OCR text) and print the build report."
    )
    parser.add_argument("source", type=Path, help="Screenshot image, or a .txt file with --text")
    parser.add_argument(
        "--text",
        action="store_true",
        help="Treat source as already-recognized text instead of an image",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=Path(os.getenv("DATABASE_PATH", "") or BACKEND_DIR / ".cache" / "builds.sqlite"),
        help="Recommendation store path",
    )
    parser.add_argument(
        "--hero-api",
        default=os.getenv("EPIC7DB_API", "") or DEFAULT_HERO_API_URL,
        help="Hero lookup API base URL",
    )
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT_SECONDS)
    parser.add_argument("--lang", default="eng", help="Tesseract language")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    return parser.parse_args()


def _read_text(args: argparse.Namespace) -> str:
    source = args.source.resolve()
    if not source.exists():
        raise FileNotFoundError(f"source not found: {source}")
    if args.text:
        return source.read_text(encoding="utf-8", errors="ignore")

    try:
        return recognize_text(source.read_bytes(), lang=args.lang)
    except OcrTextError:
        print("[OCR runtime]", json.dumps(inspect_ocr_runtime(lang=args.lang), indent=2))
        raise


def main() -> None:
    args = parse_args()
    text = _read_text(args)

    store = BuildStore(args.db.resolve())
    store.ensure_schema(seed=True)

    report = run(
        text,
        lambda name: search_hero_by_name(
            name,
            base_url=args.hero_api,
            timeout_seconds=args.timeout,
        ),
        store.find_by_hero_name,
    )

    if args.json:
        print(json.dumps(report.to_dict(), ensure_ascii=False, indent=2))
        return

    print("[Recognized text]")
    print(text.strip() or "(empty)")
    print()
    print(format_report(report))


if __name__ == "__main__":
    try:
        main()
    except (OcrTextError, BuildStoreError) as exc:
        print(f"[ERROR] {exc}")
        raise SystemExit(1) from exc
