# cardscan/vision/opencv_backend.py
from __future__ import annotations
from typing import Dict, List, Optional, Tuple
import numpy as np

from cardscan.core.contracts import BoundingBox
from cardscan.geometry.detect import detect_rectangle
from cardscan.geometry.text_regions import detect_text_regions
from cardscan.geometry.track import track_rectangle


class OpenCVVisionBackend:
    """VisionBackend built on the contour detector, the gradient text finder and the windowed tracker."""

    def __init__(self, cfg: Optional[Dict] = None):
        cfg = cfg or {}
        self.detect_cfg = cfg.get("detect") or {}
        self.text_cfg = cfg.get("text") or {}
        self.track_cfg = cfg.get("track") or {}

    def detect_rectangle(self, frame: np.ndarray,
                         aspect_range: Tuple[float, float]) -> Optional[BoundingBox]:
        return detect_rectangle(frame, aspect_range, self.detect_cfg)

    def detect_text_regions(self, frame: np.ndarray) -> List[BoundingBox]:
        return detect_text_regions(frame, self.text_cfg)

    def track_rectangle(self, frame: np.ndarray, seed: BoundingBox) -> Optional[BoundingBox]:
        return track_rectangle(frame, seed, self.track_cfg)
