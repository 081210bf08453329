from __future__ import annotations

import logging
from typing import Any

import numpy as np


class OcrTextError(Exception):
    """Base exception for screenshot text recognition."""


class OcrInputError(OcrTextError):
    """Raised when OCR input payload is invalid."""


class OcrDependencyError(OcrTextError):
    """Raised when required OCR dependency is missing."""


class OcrEngineUnavailableError(OcrTextError):
    """Raised when OCR engine is installed but unavailable at runtime."""


DEFAULT_LANG = "eng"
MIN_OCR_WIDTH = 1280
TESSERACT_CONFIG = "--oem 3 --psm 6"

logger = logging.getLogger("build_analyzer.ocr")


def _require_cv2() -> Any:
    try:
        import cv2  # type: ignore
    except Exception as exc:  # noqa: BLE001
        raise OcrDependencyError("opencv-python-headless is required") from exc
    return cv2


def _decode_image(image_bytes: bytes) -> tuple[Any, np.ndarray]:
    if not image_bytes:
        raise OcrInputError("empty image bytes")
    cv2 = _require_cv2()
    arr = np.frombuffer(image_bytes, dtype=np.uint8)
    image = cv2.imdecode(arr, cv2.IMREAD_COLOR)
    if image is None:
        raise OcrInputError("failed to decode image bytes")
    return cv2, image


def _upscale_to_width(cv2: Any, image: np.ndarray, width: int = MIN_OCR_WIDTH) -> np.ndarray:
    h, w = image.shape[:2]
    if w <= 0 or h <= 0:
        raise OcrInputError("invalid image size")
    if w >= width:
        return image
    scale = width / float(w)
    new_h = max(1, int(h * scale))
    return cv2.resize(image, (width, new_h), interpolation=cv2.INTER_CUBIC)


def _preprocess(cv2: Any, image: np.ndarray) -> np.ndarray:
    gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    gray = cv2.GaussianBlur(gray, (3, 3), 0)
    _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
    # Stat panels are light-on-dark; flip to black text on white for Tesseract.
    if np.mean(binary) < 127:
        binary = 255 - binary
    return binary


def _ocr_with_tesseract(image: np.ndarray, lang: str) -> str:
    try:
        import pytesseract  # type: ignore
        from pytesseract import TesseractNotFoundError  # type: ignore
    except Exception as exc:  # noqa: BLE001
        raise OcrDependencyError("pytesseract is required") from exc

    try:
        text = pytesseract.image_to_string(image, lang=lang, config=TESSERACT_CONFIG)
    except TesseractNotFoundError as exc:
        raise OcrEngineUnavailableError(
            "pytesseract failed: tesseract is not installed or not in PATH"
        ) from exc
    except Exception as exc:  # noqa: BLE001
        raise OcrEngineUnavailableError(f"tesseract OCR failed: {exc}") from exc
    return str(text or "")


def recognize_text(image_bytes: bytes, *, lang: str = DEFAULT_LANG) -> str:
    cv2, image_raw = _decode_image(image_bytes)
    image = _upscale_to_width(cv2, image_raw)
    return _ocr_with_tesseract(_preprocess(cv2, image), lang=lang)


def run_ocr(image_bytes: bytes, *, lang: str = DEFAULT_LANG) -> str:
    """Recognize screenshot text, degrading any engine fault to empty text."""
    try:
        return recognize_text(image_bytes, lang=lang)
    except OcrTextError as exc:
        logger.warning("ocr failed, continuing with empty text: %s", exc)
        return ""


def _engine_languages() -> tuple[str | None, list[str]]:
    import pytesseract  # type: ignore

    version = str(pytesseract.get_tesseract_version())
    return version, sorted(pytesseract.get_languages(config=""))


def inspect_ocr_runtime(lang: str = DEFAULT_LANG) -> dict[str, object]:
    """Report whether screenshot recognition can run with the configured settings.

    ``ready`` is true only when OpenCV decodes, Tesseract answers and the
    configured language pack is installed.
    """
    errors: list[str] = []
    try:
        _require_cv2()
    except OcrDependencyError as exc:
        errors.append(str(exc))

    engine_version: str | None = None
    lang_available = False
    try:
        engine_version, langs = _engine_languages()
        lang_available = lang in langs
        if not lang_available:
            errors.append(f"tesseract language pack {lang!r} is not installed")
    except ImportError:
        errors.append("pytesseract is required")
    except Exception as exc:  # noqa: BLE001
        errors.append(f"tesseract is not usable: {exc}")

    return {
        "lang": lang,
        "langAvailable": lang_available,
        "minWidth": MIN_OCR_WIDTH,
        "tesseractConfig": TESSERACT_CONFIG,
        "engineVersion": engine_version,
        "ready": not errors,
        "errors": errors,
    }
