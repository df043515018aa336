# cardscan/geometry/track.py
from __future__ import annotations
from typing import Dict, Optional
import logging
import cv2
import numpy as np

from cardscan.core.config import merge_cfg
from cardscan.core.contracts import BoundingBox
from cardscan.geometry.crop import safe_crop
from cardscan.geometry.detect import (
    find_card_quads,
    orientation_invariant_aspect,
    quad_hw,
)

log = logging.getLogger(__name__)

_DEFAULT_CFG: Dict = {
    "margin": 0.25,            # search window grows by this fraction of seed w/h on each side
    "max_side_px": 480,        # downscale the search window to this longest side ("fast" level)
    "aspect_tol": 0.20,        # widened band around the seed's own aspect
    "min_area_scale": 0.5,     # candidate area relative to seed area
    "max_area_scale": 2.0,
    "min_iou": 0.3,
    "detect": {},              # overrides for the quad finder inside the window
    "debug": False,
}


def track_rectangle(frame: np.ndarray, seed: BoundingBox, cfg: Optional[Dict] = None) -> Optional[BoundingBox]:
    """
    Find the seed rectangle again in a new frame.

    Searches only a window around the seed, accepts quads whose shape and
    size stay close to the seed, and keeps the one overlapping the seed most.
    Returns None when the card is lost.
    """
    cfg = merge_cfg(_DEFAULT_CFG, cfg)
    H, W = frame.shape[:2]
    sx0, sy0, sx1, sy1 = seed.to_px(W, H)
    sw, sh = sx1 - sx0, sy1 - sy0
    if sw <= 1 or sh <= 1:
        return None

    m = float(cfg["margin"])
    x0 = max(0, int(sx0 - m * sw)); x1 = min(W, int(sx1 + m * sw))
    y0 = max(0, int(sy0 - m * sh)); y1 = min(H, int(sy1 + m * sh))
    window = safe_crop(frame, (x0, y0, x1, y1))
    if window is None:
        return None

    wh, ww = window.shape[:2]
    scale = min(1.0, float(cfg["max_side_px"]) / max(wh, ww))
    if scale < 1.0:
        window = cv2.resize(window, (max(1, int(ww * scale)), max(1, int(wh * scale))),
                            interpolation=cv2.INTER_AREA)

    if seed.corners is not None:
        seed_quad = np.array([(cx * W, cy * H) for cx, cy in seed.corners], np.float32)
        seed_aspect = orientation_invariant_aspect(*quad_hw(seed_quad))
    else:
        seed_aspect = orientation_invariant_aspect(float(sh), float(sw))
    tol = float(cfg["aspect_tol"])
    aspect_range = (seed_aspect * (1.0 - tol), seed_aspect * (1.0 + tol))

    seed_area = float(sw * sh)
    win_area = float(window.shape[0] * window.shape[1]) / (scale * scale)
    detect_cfg = dict(cfg.get("detect") or {})
    detect_cfg["min_area_ratio"] = float(cfg["min_area_scale"]) * seed_area / win_area
    detect_cfg["max_area_ratio"] = min(1.0, float(cfg["max_area_scale"]) * seed_area / win_area)

    best, best_iou = None, 0.0
    for q in find_card_quads(window, aspect_range, detect_cfg):
        q = q / scale + np.array([x0, y0], np.float32)
        cand = BoundingBox.from_quad(q, frame.shape)
        iou = cand.iou(seed)
        if iou > best_iou:
            best, best_iou = cand, iou

    if best is None or best_iou < float(cfg["min_iou"]):
        if cfg.get("debug"):
            log.debug("[track] lost (best iou=%.2f)", best_iou)
        return None
    if cfg.get("debug"):
        log.debug("[track] iou=%.2f", best_iou)
    return best
