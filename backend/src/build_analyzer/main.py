import asyncio
import logging
import os
import time
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from .services.build_store import (
    BuildRecommendation,
    BuildStore,
    BuildStoreError,
    DuplicateBuildError,
)
from .services.hero_client import DEFAULT_HERO_API_URL, HeroRecord, search_hero_by_name
from .services.ocr_text import inspect_ocr_runtime, run_ocr
from .services.pipeline import AnalysisReport, run

app = FastAPI(title="Build Analyzer API")
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("build_analyzer.main")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


APP_HOST = os.getenv("HOST", "0.0.0.0")
APP_PORT = _env_int("PORT", 8000)
HERO_API_URL = os.getenv("EPIC7DB_API", "").strip() or DEFAULT_HERO_API_URL
HERO_LOOKUP_TIMEOUT_SECONDS = max(0.5, _env_float("HERO_LOOKUP_TIMEOUT_SECONDS", 8.0))
HERO_FALLBACK_TOKEN_LIMIT = max(0, _env_int("HERO_FALLBACK_TOKEN_LIMIT", 50))
DATABASE_PATH = os.getenv("DATABASE_PATH", "").strip() or str(
    Path(__file__).resolve().parents[2] / ".cache" / "builds.sqlite"
)
OCR_MAX_UPLOAD_MB = _env_float("OCR_MAX_UPLOAD_MB", 8.0)
OCR_MAX_UPLOAD_BYTES = max(1, int(OCR_MAX_UPLOAD_MB * 1024 * 1024))
OCR_TIMEOUT_SECONDS = max(1.0, _env_float("OCR_TIMEOUT_SECONDS", 15.0))
OCR_LANG = os.getenv("OCR_LANG", "").strip() or "eng"
OCR_TEXT_PREVIEW_CHARS = 3000

build_store = BuildStore(DATABASE_PATH)


def _error(
    *,
    status_code: int,
    code: str,
    message: str,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "ok": False,
            "error": {
                "code": code,
                "message": message,
            },
        },
    )


def _lookup_hero(name: str) -> HeroRecord | None:
    return search_hero_by_name(
        name,
        base_url=HERO_API_URL,
        timeout_seconds=HERO_LOOKUP_TIMEOUT_SECONDS,
    )


def _analyze(text: str) -> AnalysisReport:
    return run(
        text,
        _lookup_hero,
        build_store.find_by_hero_name,
        max_fallback_tokens=HERO_FALLBACK_TOKEN_LIMIT,
    )


async def _analysis_response(text: str) -> object:
    try:
        report = await asyncio.to_thread(_analyze, text)
    except BuildStoreError as exc:
        logger.exception("build store unavailable during analysis")
        return _error(
            status_code=503,
            code="STORE_UNAVAILABLE",
            message=str(exc),
        )
    except Exception:
        logger.exception("unexpected analysis failure")
        return _error(
            status_code=500,
            code="ANALYSIS_FAILED",
            message="Internal error analyzing image",
        )

    body = report.to_dict()
    return {
        "ok": True,
        "detected": body["detected"],
        "ocrText": text[:OCR_TEXT_PREVIEW_CHARS],
        "evalResult": body["evalResult"],
        "builds": body["builds"],
    }


@app.middleware("http")
async def request_log_middleware(request: Request, call_next):
    started = time.perf_counter()
    method = request.method
    path = request.url.path
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.exception(
            "request failed method=%s path=%s duration_ms=%.2f",
            method,
            path,
            elapsed_ms,
        )
        raise

    elapsed_ms = (time.perf_counter() - started) * 1000.0
    logger.info(
        "request method=%s path=%s status=%s duration_ms=%.2f",
        method,
        path,
        response.status_code,
        elapsed_ms,
    )
    return response


@app.on_event("startup")
def _startup_store() -> None:
    logger.info(
        "startup config host=%s port=%s hero_api=%s hero_timeout_seconds=%.2f",
        APP_HOST,
        APP_PORT,
        HERO_API_URL,
        HERO_LOOKUP_TIMEOUT_SECONDS,
    )
    logger.info(
        "startup config ocr_max_upload_mb=%.2f ocr_timeout_seconds=%.2f ocr_lang=%s",
        OCR_MAX_UPLOAD_MB,
        OCR_TIMEOUT_SECONDS,
        OCR_LANG,
    )
    build_store.ensure_schema(seed=True)
    logger.info("startup build store ready path=%s", build_store.db_path)


@app.get("/", response_class=PlainTextResponse)
def index() -> str:
    return "Build Analyzer - ready"


@app.get("/health")
def health() -> dict[str, bool]:
    return {"ok": True}


@app.get("/api/ocr/runtime")
def ocr_runtime() -> dict[str, object]:
    return inspect_ocr_runtime(lang=OCR_LANG)


@app.get("/api/builds")
def list_builds(hero: str = "") -> list[dict[str, object]]:
    try:
        builds = build_store.find_by_hero_name(hero)
    except BuildStoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return [build.to_dict() for build in builds]


def _optional_text(payload: dict[str, object], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@app.post("/api/builds", status_code=201)
def add_build(payload: dict[str, object]) -> dict[str, object]:
    hero_name = _optional_text(payload, "heroName")
    gear_set = _optional_text(payload, "gearSet")
    if not hero_name:
        raise HTTPException(status_code=400, detail="'heroName' is required")
    if not gear_set:
        raise HTTPException(status_code=400, detail="'gearSet' is required")

    build = BuildRecommendation(
        hero_name=hero_name,
        role=_optional_text(payload, "role"),
        gear_set=gear_set,
        substats=_optional_text(payload, "substats"),
        weapon=_optional_text(payload, "weapon"),
        notes=_optional_text(payload, "notes"),
    )
    try:
        saved = build_store.add(build)
    except DuplicateBuildError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except BuildStoreError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return saved.to_dict()


@app.post("/api/analyze-text", response_model=None)
async def analyze_text(payload: dict[str, object]) -> object:
    text = payload.get("text")
    if not isinstance(text, str):
        return _error(
            status_code=400,
            code="INVALID_TEXT",
            message="'text' must be a string",
        )
    return await _analysis_response(text)


@app.post("/analyze-image", response_model=None)
async def analyze_image(
    request: Request,
) -> object:
    content_type = (request.headers.get("content-type") or "").lower()
    if "multipart/form-data" not in content_type:
        return _error(
            status_code=400,
            code="INVALID_CONTENT_TYPE",
            message="multipart/form-data with 'image' field is required",
        )

    content_length_raw = (request.headers.get("content-length") or "").strip()
    if content_length_raw:
        try:
            content_length = int(content_length_raw)
            if content_length > OCR_MAX_UPLOAD_BYTES:
                return _error(
                    status_code=413,
                    code="FILE_TOO_LARGE",
                    message=f"image payload exceeds {OCR_MAX_UPLOAD_MB:.2f} MB limit",
                )
        except ValueError:
            pass

    try:
        form = await request.form()
    except Exception:  # noqa: BLE001
        logger.exception("image form parse failed")
        return _error(
            status_code=503,
            code="MULTIPART_UNAVAILABLE",
            message=(
                "multipart parser unavailable. Install dependency: "
                "pip install python-multipart"
            ),
        )

    image = form.get("image")
    if image is None or isinstance(image, str):
        return _error(
            status_code=400,
            code="MISSING_IMAGE",
            message="No image uploaded",
        )

    image_content_type = str(getattr(image, "content_type", "") or "").lower()
    if image_content_type and not image_content_type.startswith("image/"):
        return _error(
            status_code=400,
            code="INVALID_IMAGE_TYPE",
            message="image file is required",
        )

    payload = await image.read()
    if not payload:
        return _error(
            status_code=400,
            code="EMPTY_IMAGE",
            message="empty image payload",
        )
    if len(payload) > OCR_MAX_UPLOAD_BYTES:
        return _error(
            status_code=413,
            code="FILE_TOO_LARGE",
            message=f"image payload exceeds {OCR_MAX_UPLOAD_MB:.2f} MB limit",
        )

    try:
        text = await asyncio.wait_for(
            asyncio.to_thread(run_ocr, payload, lang=OCR_LANG),
            timeout=OCR_TIMEOUT_SECONDS,
        )
    except asyncio.TimeoutError:
        logger.warning(
            "ocr exceeded timeout %.2fs, continuing with empty text",
            OCR_TIMEOUT_SECONDS,
        )
        text = ""

    return await _analysis_response(text)
