# cardscan/geometry/crop.py
from __future__ import annotations
from typing import Optional, Tuple
import numpy as np

from cardscan.core.contracts import BoundingBox


def to_px(box, W: int, H: int) -> Tuple[int, int, int, int]:
    """Normalized (x0, y0, x1, y1) -> pixel (x0, y0, x1, y1)."""
    x0, y0, x1, y1 = box
    return (round(x0 * W), round(y0 * H), round(x1 * W), round(y1 * H))


def safe_crop(img: np.ndarray, xyxy) -> Optional[np.ndarray]:
    """Clamp xyxy to the image and return a copy of that region, or None if empty."""
    x0, y0, x1, y1 = xyxy
    h, w = img.shape[:2]
    x0 = max(0, min(int(x0), w)); x1 = max(0, min(int(x1), w))
    y0 = max(0, min(int(y0), h)); y1 = max(0, min(int(y1), h))
    if x1 <= x0 or y1 <= y0:
        return None
    return img[y0:y1, x0:x1].copy()


def crop_region(frame: np.ndarray, region: BoundingBox) -> Optional[np.ndarray]:
    """
    Cut the pixel rectangle covered by a normalized region out of frame.

    The returned array owns its data, so the caller's frame buffer can be
    reused as soon as this returns.
    """
    H, W = frame.shape[:2]
    return safe_crop(frame, to_px((region.x, region.y, region.x1, region.y1), W, H))
