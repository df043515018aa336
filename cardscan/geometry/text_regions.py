# cardscan/geometry/text_regions.py
from __future__ import annotations
from typing import Dict, List, Optional
import logging
import cv2
import numpy as np

from cardscan.core.config import merge_cfg
from cardscan.core.contracts import BoundingBox

log = logging.getLogger(__name__)

_DEFAULT_CFG: Dict = {
    "work_width": 600,              # frames are resized to this width first
    "glyph_kernel": (15, 5),        # top-hat / black-hat kernel (w, h)
    "line_kernel": (21, 5),         # closes gaps between glyphs of one line
    "square_kernel": 5,
    "min_aspect": 1.5,              # w / h of a text line
    "min_height_px": 6,
    "max_height_ratio": 0.25,       # of the working image height
    "min_area_px": 150,
    "debug": False,
}


def _resize_to_width(gray: np.ndarray, width: int):
    h, w = gray.shape[:2]
    if width <= 0 or w == width:
        return gray, 1.0
    scale = width / float(w)
    interp = cv2.INTER_AREA if scale < 1.0 else cv2.INTER_LINEAR
    return cv2.resize(gray, (width, max(1, int(round(h * scale)))), interpolation=interp), scale


def text_mask(gray: np.ndarray, cfg: Dict) -> np.ndarray:
    """
    Binary mask of text-like areas: top-hat (light glyphs) and black-hat (dark
    glyphs) -> horizontal gradient -> close -> Otsu -> close.
    """
    gw, gh = cfg["glyph_kernel"]
    lw, lh = cfg["line_kernel"]
    glyph_k = cv2.getStructuringElement(cv2.MORPH_RECT, (int(gw), int(gh)))
    line_k = cv2.getStructuringElement(cv2.MORPH_RECT, (int(lw), int(lh)))
    sq = int(cfg["square_kernel"])
    sq_k = cv2.getStructuringElement(cv2.MORPH_RECT, (sq, sq))

    tophat = cv2.morphologyEx(gray, cv2.MORPH_TOPHAT, glyph_k)
    blackhat = cv2.morphologyEx(gray, cv2.MORPH_BLACKHAT, glyph_k)
    hat = cv2.max(tophat, blackhat)

    grad_x = cv2.Sobel(hat, ddepth=cv2.CV_32F, dx=1, dy=0, ksize=-1)
    grad_x = np.absolute(grad_x)
    (min_val, max_val) = (float(np.min(grad_x)), float(np.max(grad_x)))
    if max_val - min_val <= 0:
        return np.zeros_like(gray)
    grad_x = (255 * (grad_x - min_val) / (max_val - min_val)).astype("uint8")

    grad_x = cv2.morphologyEx(grad_x, cv2.MORPH_CLOSE, line_k)
    thresh = cv2.threshold(grad_x, 0, 255, cv2.THRESH_BINARY | cv2.THRESH_OTSU)[1]
    return cv2.morphologyEx(thresh, cv2.MORPH_CLOSE, sq_k)


def detect_text_regions(frame: np.ndarray, cfg: Optional[Dict] = None) -> List[BoundingBox]:
    """Text-line boxes in normalized coordinates, in reading order (top-to-bottom, left-to-right)."""
    cfg = merge_cfg(_DEFAULT_CFG, cfg)
    gray = frame if frame.ndim == 2 else cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    work, scale = _resize_to_width(gray, int(cfg["work_width"]))
    mask = text_mask(work, cfg)

    cnts, _ = cv2.findContours(mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    Hw, Ww = work.shape[:2]
    max_h = float(cfg["max_height_ratio"]) * Hw
    boxes = []
    for c in cnts:
        x, y, w, h = cv2.boundingRect(c)
        if h < int(cfg["min_height_px"]) or h > max_h:
            continue
        if w * h < int(cfg["min_area_px"]):
            continue
        if w / float(h) < float(cfg["min_aspect"]):
            continue
        boxes.append((x, y, w, h))

    boxes.sort(key=lambda b: (b[1], b[0]))
    if cfg.get("debug"):
        log.debug("[text] %d contours -> %d text regions", len(cnts), len(boxes))

    H, W = frame.shape[:2]
    return [BoundingBox.from_px(x / scale, y / scale, (x + w) / scale, (y + h) / scale, W, H)
            for (x, y, w, h) in boxes]
