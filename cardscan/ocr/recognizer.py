# cardscan/ocr/recognizer.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import logging
import cv2
import numpy as np
import pytesseract

from cardscan.core.config import merge_cfg
from cardscan.ocr.tess_config import default_config, try_set_best_models

log = logging.getLogger(__name__)

try_set_best_models()

_DEFAULT_CFG: Dict = {
    "scale": 2,
    # Each pass is one preprocessing variant read with one page-segmentation
    # mode; their line readings are the alternates ranked per line.
    "passes": [
        {"prep": "gray", "psm": 6},
        {"prep": "binary", "psm": 6},
        {"prep": "binary", "psm": 11},
    ],
    "emit_words": True,
    "extra": {},            # additional -c key=value settings (e.g. a digit whitelist)
    "line_overlap": 0.5,    # vertical overlap (of the shorter line) to merge lines across passes
}


# =========================
# Preprocessing
# =========================
def prep_gray(bgr: np.ndarray, scale: int = 2) -> np.ndarray:
    """grayscale -> denoise -> unsharp -> CLAHE -> upscale"""
    g = bgr if bgr.ndim == 2 else cv2.cvtColor(bgr, cv2.COLOR_BGR2GRAY)
    g = cv2.GaussianBlur(g, (3, 3), 0)
    blur = cv2.GaussianBlur(g, (0, 0), 1.0)
    g = cv2.addWeighted(g, 1.5, blur, -0.5, 0)
    g = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8)).apply(g)
    if scale > 1:
        g = cv2.resize(g, (g.shape[1] * scale, g.shape[0] * scale), interpolation=cv2.INTER_CUBIC)
    return g


def prep_binary(bgr: np.ndarray, scale: int = 2) -> np.ndarray:
    """prep_gray + Otsu, polarity chosen so the background (majority) is white."""
    g = prep_gray(bgr, scale)
    _, th1 = cv2.threshold(g, 0, 255, cv2.THRESH_BINARY | cv2.THRESH_OTSU)
    _, th2 = cv2.threshold(g, 0, 255, cv2.THRESH_BINARY_INV | cv2.THRESH_OTSU)
    th = th2 if (th2 == 255).sum() > (th1 == 255).sum() else th1
    return cv2.morphologyEx(th, cv2.MORPH_OPEN, cv2.getStructuringElement(cv2.MORPH_RECT, (2, 1)), 1)


PREPROCESSORS = {
    "gray": prep_gray,
    "binary": prep_binary,
}


# =========================
# Line grouping
# =========================
@dataclass
class LineReading:
    text: str
    conf: float
    top: float
    bottom: float
    words: List[str] = field(default_factory=list)


def _conf(c) -> float:
    try:
        return float(c)
    except (TypeError, ValueError):
        return -1.0


def lines_from_data(d: Dict, scale: float = 1.0) -> List[LineReading]:
    """Group image_to_data words into lines; coordinates are divided by scale."""
    groups: Dict[tuple, list] = {}
    for i, raw in enumerate(d.get("text", [])):
        w = (raw or "").strip()
        c = _conf(d["conf"][i])
        if not w or c < 0:
            continue
        key = (d["block_num"][i], d["par_num"][i], d["line_num"][i])
        groups.setdefault(key, []).append(
            (int(d["left"][i]), w, c, int(d["top"][i]), int(d["height"][i])))

    lines = []
    for items in groups.values():
        items.sort(key=lambda t: t[0])
        words = [t[1] for t in items]
        lines.append(LineReading(
            text=" ".join(words),
            conf=float(np.mean([t[2] for t in items])),
            top=min(t[3] for t in items) / scale,
            bottom=max(t[3] + t[4] for t in items) / scale,
            words=words,
        ))
    return lines


def cluster_lines(readings: List[LineReading], overlap: float = 0.5) -> List[List[LineReading]]:
    """
    Merge readings of the same physical line from different passes.
    Each cluster is ordered best confidence first; clusters go top to bottom.
    """
    clusters: List[List[LineReading]] = []
    for r in sorted(readings, key=lambda r: -r.conf):
        for cl in clusters:
            a = cl[0]
            inter = min(a.bottom, r.bottom) - max(a.top, r.top)
            if inter > overlap * min(a.bottom - a.top, r.bottom - r.top):
                cl.append(r)
                break
        else:
            clusters.append([r])
    clusters.sort(key=lambda cl: cl[0].top)
    return clusters


class TesseractRecognizer:
    """TextRecognizer on top of pytesseract, tuned for accuracy with dictionaries off."""

    def __init__(self, cfg: Optional[Dict] = None):
        self.cfg = merge_cfg(_DEFAULT_CFG, cfg)

    def _read_pass(self, image: np.ndarray, prep: str, psm: int) -> List[LineReading]:
        scale = int(self.cfg["scale"])
        img = PREPROCESSORS[prep](image, scale=scale)
        d = pytesseract.image_to_data(img, config=default_config(psm, self.cfg.get("extra")),
                                      output_type=pytesseract.Output.DICT)
        return lines_from_data(d, scale=max(1, scale))

    def recognize_text(self, image: np.ndarray, top_candidates: int = 10) -> List[str]:
        if image is None or image.size == 0:
            return []
        readings: List[LineReading] = []
        for p in self.cfg["passes"]:
            readings += self._read_pass(image, p.get("prep", "gray"), int(p.get("psm", 6)))

        out: List[str] = []
        for cl in cluster_lines(readings, float(self.cfg["line_overlap"])):
            # best reading, its words, then the other passes' alternates
            ranked = [cl[0].text]
            if self.cfg.get("emit_words") and len(cl[0].words) > 1:
                ranked += cl[0].words
            ranked += [r.text for r in cl[1:]]
            seen: List[str] = []
            for text in ranked:
                if len(seen) >= top_candidates:
                    break
                if text not in seen:
                    seen.append(text)
            out += seen
        log.debug("[ocr] %d passes -> %d lines, %d readings",
                  len(self.cfg["passes"]), len(readings), len(out))
        return out
