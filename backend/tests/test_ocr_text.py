from __future__ import annotations

import pytest

from build_analyzer.services import ocr_text  # type: ignore[import-not-found]
from build_analyzer.services.ocr_text import (  # type: ignore[import-not-found]
    OcrDependencyError,
    OcrEngineUnavailableError,
    OcrInputError,
    inspect_ocr_runtime,
    recognize_text,
    run_ocr,
)


def test_empty_payload_is_input_error() -> None:
    with pytest.raises(OcrInputError):
        recognize_text(b"")


def test_run_ocr_degrades_every_engine_fault_to_empty_text(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    errors = [
        OcrInputError("failed to decode image bytes"),
        OcrDependencyError("pytesseract is required"),
        OcrEngineUnavailableError("tesseract is not installed"),
    ]

    def failing(image_bytes: bytes, *, lang: str) -> str:
        raise errors.pop(0)

    monkeypatch.setattr(ocr_text, "recognize_text", failing)

    assert [run_ocr(b"img") for _ in range(3)] == ["", "", ""]


def test_run_ocr_passes_text_through(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ocr_text, "recognize_text", lambda image_bytes, *, lang: "SPD 160")

    assert run_ocr(b"img") == "SPD 160"


def test_undecodable_bytes_never_raise() -> None:
    assert run_ocr(b"definitely not an image") == ""


def test_runtime_report_describes_configured_settings() -> None:
    status = inspect_ocr_runtime(lang="kor")

    assert set(status) == {
        "lang",
        "langAvailable",
        "minWidth",
        "tesseractConfig",
        "engineVersion",
        "ready",
        "errors",
    }
    assert status["lang"] == "kor"
    assert status["minWidth"] == ocr_text.MIN_OCR_WIDTH
    assert status["tesseractConfig"] == ocr_text.TESSERACT_CONFIG
    assert status["ready"] is (status["errors"] == [])


def test_runtime_flags_missing_language_pack(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(ocr_text, "_require_cv2", lambda: object())
    monkeypatch.setattr(ocr_text, "_engine_languages", lambda: ("5.3.0", ["eng", "osd"]))

    assert inspect_ocr_runtime(lang="eng")["ready"] is True

    status = inspect_ocr_runtime(lang="kor")

    assert status["engineVersion"] == "5.3.0"
    assert status["langAvailable"] is False
    assert status["ready"] is False
    assert status["errors"] == ["tesseract language pack 'kor' is not installed"]


def test_runtime_reports_unusable_engine(monkeypatch: pytest.MonkeyPatch) -> None:
    def missing_binary() -> tuple[str | None, list[str]]:
        raise OSError("tesseract is not installed or it's not in your PATH")

    monkeypatch.setattr(ocr_text, "_require_cv2", lambda: object())
    monkeypatch.setattr(ocr_text, "_engine_languages", missing_binary)

    status = inspect_ocr_runtime()

    assert status["engineVersion"] is None
    assert status["langAvailable"] is False
    assert status["ready"] is False
    assert status["errors"][0].startswith("tesseract is not usable")


def test_recognizes_rendered_stat_text() -> None:
    cv2 = pytest.importorskip("cv2")
    np = pytest.importorskip("numpy")
    status = inspect_ocr_runtime()
    if not status["ready"]:
        pytest.skip(f"OCR backend unavailable: {status['errors']}")

    canvas = np.zeros((160, 640, 3), dtype=np.uint8)
    cv2.putText(canvas, "SPD 195", (20, 100), cv2.FONT_HERSHEY_SIMPLEX, 2.5, (255, 255, 255), 5)
    ok, encoded = cv2.imencode(".png", canvas)
    assert ok

    text = recognize_text(encoded.tobytes())

    assert "195" in text
