from __future__ import annotations
import os
import logging

log = logging.getLogger(__name__)

# Centralized Tesseract configuration helpers.
# Card numbers are not words: dictionaries stay off so the engine never
# "corrects" a digit group toward a vocabulary entry.

NO_LANGUAGE_CORRECTION = {
    "load_system_dawg": "0",
    "load_freq_dawg": "0",
}


def default_config(psm: int = 6, extra: dict[str, str] | None = None, dpi: int = 300) -> str:
    cfg = ["--oem", "1", "--psm", str(psm), "-c", f"user_defined_dpi={dpi}"]
    for k, v in {**NO_LANGUAGE_CORRECTION, **(extra or {})}.items():
        cfg += ["-c", f"{k}={v}"]
    return " ".join(cfg)


def try_set_best_models() -> None:
    """If tessdata_best is installed, point TESSDATA_PREFIX to it.

    Safe to call multiple times; an existing TESSDATA_PREFIX wins.
    """
    # Heuristic common paths on Debian/Ubuntu/Raspberry Pi OS
    candidates = [
        "/usr/share/tesseract-ocr/5/tessdata_best",
        "/usr/share/tesseract-ocr/tessdata_best",
        "/usr/share/tesseract-ocr/4.00/tessdata_best",
    ]
    for p in candidates:
        if os.path.isdir(p):
            os.environ.setdefault("TESSDATA_PREFIX", p)
            log.debug("[ocr] TESSDATA_PREFIX=%s", os.environ["TESSDATA_PREFIX"])
            break
