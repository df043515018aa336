"""
Capability interfaces the scanning core consumes and the observer it reports to.

The core only talks to these; concrete OpenCV/Tesseract implementations live
in cardscan.vision and cardscan.ocr.
"""

from __future__ import annotations
from typing import Optional, Protocol, Sequence, Tuple
import numpy as np

from cardscan.core.contracts import BoundingBox


class VisionBackend(Protocol):
    def detect_rectangle(self, frame: np.ndarray,
                         aspect_range: Tuple[float, float]) -> Optional[BoundingBox]:
        ...

    def detect_text_regions(self, frame: np.ndarray) -> Sequence[BoundingBox]:
        ...

    def track_rectangle(self, frame: np.ndarray, seed: BoundingBox) -> Optional[BoundingBox]:
        ...


class TextRecognizer(Protocol):
    def recognize_text(self, image: np.ndarray, top_candidates: int) -> Sequence[str]:
        """Return candidate readings; at most top_candidates per detected text line."""
        ...


class ScanObserver(Protocol):
    def on_card_number_found(self, digits: str) -> None:
        ...

    def on_tracked_region_updated(self, region: BoundingBox) -> None:
        ...

    def on_overlay_clear_requested(self) -> None:
        ...
