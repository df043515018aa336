# cardscan/geometry/detect.py
from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import logging
import math
import cv2
import numpy as np

from cardscan.core.config import merge_cfg
from cardscan.core.contracts import BoundingBox

log = logging.getLogger(__name__)

# Defaults tuned for 640-1280px webcam frames and the synthetic tests
_DEFAULT_CFG: Dict = {
    "min_area_ratio": 0.02,            # relative to frame area
    "max_area_ratio": 0.98,
    "max_quad_epsilon": 0.04,          # approxPolyDP epsilon, fraction of perimeter
    "min_solidity": 0.85,              # for the minAreaRect fallback
    "canny": {"low": 40, "high": 160, "clahe": True},
    "blur": {"ksize": 5},
    "close_ksize": 5,
    "debug": False,
}


# ----------------------------------------------------------------------------- #
# Quad helpers                                                                  #
# ----------------------------------------------------------------------------- #

def order_corners_clockwise(pts: np.ndarray) -> np.ndarray:
    pts = np.asarray(pts, np.float32)
    if pts.shape != (4, 2):
        pts = pts.reshape(4, 2)
    sorted_y = pts[np.argsort(pts[:, 1])]
    top2 = sorted_y[:2]
    bottom2 = sorted_y[2:]
    tl, tr = top2[np.argsort(top2[:, 0])]
    bl, br = bottom2[np.argsort(bottom2[:, 0])]
    return np.array([tl, tr, br, bl], dtype=np.float32)


def quad_hw(quad: np.ndarray) -> Tuple[float, float]:
    q = np.asarray(quad, np.float32).reshape(4, 2)
    def d(a, b) -> float: return math.hypot(float(a[0] - b[0]), float(a[1] - b[1]))
    tl, tr, br, bl = q
    w = 0.5 * (d(tl, tr) + d(bl, br))
    h = 0.5 * (d(tl, bl) + d(tr, br))
    return h, w


def orientation_invariant_aspect(h: float, w: float) -> float:
    if h <= 1e-3 or w <= 1e-3:
        return 0.0
    a = h / w
    return max(a, 1.0 / a)


def is_plausible_quad(pts: np.ndarray, frame_shape, aspect_range: Tuple[float, float],
                      cfg: Optional[Dict] = None) -> bool:
    """Area within [min_area_ratio, max_area_ratio] of the frame and long/short side ratio inside aspect_range."""
    cfg = merge_cfg(_DEFAULT_CFG, cfg)
    H, W = frame_shape[:2]
    frame_area = float(H * W)

    pts = np.asarray(pts, dtype=np.float32).reshape(4, 2)
    if not np.isfinite(pts).all():
        return False

    area = abs(cv2.contourArea(pts))
    area_ratio = area / frame_area if frame_area > 0 else 0.0
    if not (float(cfg["min_area_ratio"]) <= area_ratio <= float(cfg["max_area_ratio"])):
        if cfg.get("debug"):
            log.debug("[plaus] area fail: ratio=%.4f", area_ratio)
        return False

    h, w = quad_hw(pts)
    aspect = orientation_invariant_aspect(h, w)
    a_min, a_max = aspect_range
    ok_aspect = a_min <= aspect <= a_max
    if cfg.get("debug"):
        log.debug("[plaus] area%%=%.4f, aspect=%.3f, range=(%.3f,%.3f) -> %s",
                  area_ratio, aspect, a_min, a_max, ok_aspect)
    return ok_aspect


# ----------------------------------------------------------------------------- #
# Edge map / contour candidates                                                 #
# ----------------------------------------------------------------------------- #

def _to_gray(frame: np.ndarray) -> np.ndarray:
    if frame.ndim == 2:
        return frame
    return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)


def edge_map(frame: np.ndarray, cfg: Dict) -> np.ndarray:
    gray = _to_gray(frame)
    k = int(cfg["blur"].get("ksize", 5))
    if k > 1:
        k |= 1
        gray = cv2.GaussianBlur(gray, (k, k), 0)
    if cfg["canny"].get("clahe", True):
        gray = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8)).apply(gray)
    edges = cv2.Canny(gray, int(cfg["canny"]["low"]), int(cfg["canny"]["high"]))
    c = max(3, int(cfg.get("close_ksize", 5)) | 1)
    edges = cv2.dilate(edges, np.ones((3, 3), np.uint8), iterations=1)
    return cv2.morphologyEx(edges, cv2.MORPH_CLOSE, np.ones((c, c), np.uint8), iterations=1)


def _contour_to_quad(c: np.ndarray, cfg: Dict) -> Optional[np.ndarray]:
    peri = cv2.arcLength(c, True)
    approx = cv2.approxPolyDP(c, float(cfg["max_quad_epsilon"]) * peri, True)
    if len(approx) == 4 and cv2.isContourConvex(approx):
        return order_corners_clockwise(approx.reshape(4, 2))

    # Rounded card corners often leave 5-8 points; fall back to the min-area box
    # when the contour is solid enough to be a single rectangle.
    area = cv2.contourArea(c)
    hull_area = cv2.contourArea(cv2.convexHull(c))
    if hull_area <= 0 or area / hull_area < float(cfg["min_solidity"]):
        return None
    box = cv2.boxPoints(cv2.minAreaRect(c))
    return order_corners_clockwise(box)


def find_card_quads(frame: np.ndarray, aspect_range: Tuple[float, float],
                    cfg: Optional[Dict] = None) -> List[np.ndarray]:
    """Card-shaped quads in pixel coordinates, largest first."""
    cfg = merge_cfg(_DEFAULT_CFG, cfg)
    edges = edge_map(frame, cfg)
    cnts, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    if not cnts:
        return []

    H, W = frame.shape[:2]
    min_area = float(cfg["min_area_ratio"]) * H * W
    candidates: List[Tuple[float, np.ndarray]] = []
    for c in cnts:
        if len(c) < 4 or cv2.contourArea(c) < min_area:
            continue
        quad = _contour_to_quad(c, cfg)
        if quad is None:
            continue
        if is_plausible_quad(quad, frame.shape, aspect_range, cfg):
            candidates.append((abs(cv2.contourArea(quad)), quad))

    candidates.sort(key=lambda t: t[0], reverse=True)
    if cfg.get("debug"):
        log.debug("[detect] %d contours -> %d card-like quads", len(cnts), len(candidates))
    return [q for _, q in candidates]


def detect_rectangle(frame: np.ndarray, aspect_range: Tuple[float, float],
                     cfg: Optional[Dict] = None) -> Optional[BoundingBox]:
    quads = find_card_quads(frame, aspect_range, cfg)
    return BoundingBox.from_quad(quads[0], frame.shape) if quads else None
