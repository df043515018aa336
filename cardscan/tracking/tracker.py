# cardscan/tracking/tracker.py
from __future__ import annotations
from typing import Callable, Iterable, List, Optional, Sequence, Tuple
import logging
import threading
import numpy as np

from cardscan.core.contracts import BoundingBox, TrackerState, card_aspect_range
from cardscan.core.ports import ScanObserver, VisionBackend
from cardscan.ocr.extraction import CardNumberExtractor

log = logging.getLogger(__name__)


class CardTracker:
    """
    Per-frame search/track state machine for a single payment card.

    IDLE: detect a card-shaped rectangle that contains a text region.
    TRACKING: refine the last rectangle in the new frame and hand the
    previous rectangle to the number extractor.

    process_frame must be called from one thread only (the frame queue);
    the tracked candidate is never touched anywhere else.
    """

    def __init__(self, vision: VisionBackend, extractor: CardNumberExtractor, *,
                 observers: Iterable[ScanObserver] = (),
                 aspect_range: Optional[Tuple[float, float]] = None):
        self.vision = vision
        self.extractor = extractor
        self.aspect_range = aspect_range or card_aspect_range()
        self._candidate: Optional[BoundingBox] = None
        self._observers: List[ScanObserver] = list(observers)
        self._obs_lock = threading.Lock()

    # ---------------------------- observers ---------------------------- #

    def add_observer(self, observer: ScanObserver) -> None:
        with self._obs_lock:
            if observer not in self._observers:
                self._observers.append(observer)

    def remove_observer(self, observer: ScanObserver) -> None:
        with self._obs_lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def _emit(self, name: str, *args) -> None:
        with self._obs_lock:
            observers = list(self._observers)
        for obs in observers:
            try:
                getattr(obs, name)(*args)
            except Exception:
                log.exception("[tracker] observer %r failed in %s", obs, name)

    def _emit_card_number(self, digits: str) -> None:
        self._emit("on_card_number_found", digits)

    # ------------------------------ state ------------------------------ #

    @property
    def candidate(self) -> Optional[BoundingBox]:
        return self._candidate

    @property
    def state(self) -> TrackerState:
        return TrackerState.IDLE if self._candidate is None else TrackerState.TRACKING

    def reset(self) -> None:
        self._candidate = None

    # ---------------------------- per frame ---------------------------- #

    def _call(self, what: str, fn: Callable, *args):
        try:
            return fn(*args)
        except Exception as e:
            log.warning("[tracker] %s failed: %s", what, e)
            return None

    def _acquire(self, frame: np.ndarray) -> None:
        rect = self._call("rectangle detection", self.vision.detect_rectangle, frame, self.aspect_range)
        texts: Sequence[BoundingBox] = self._call("text detection", self.vision.detect_text_regions, frame) or ()
        if rect is None:
            return
        # Only the first text region counts; detectors report them in reading order.
        if not texts or not rect.contains(texts[0]):
            log.debug("[tracker] first text region not inside rectangle (%d text regions)", len(texts))
            return
        self._candidate = rect
        log.info("[tracker] card acquired at (%.3f, %.3f, %.3f, %.3f)",
                 rect.x, rect.y, rect.width, rect.height)
        self._emit("on_tracked_region_updated", rect)

    def _follow(self, frame: np.ndarray) -> None:
        seed = self._candidate
        tracked = self._call("tracking", self.vision.track_rectangle, frame, seed)
        if tracked is None:
            self._candidate = None
            log.info("[tracker] card lost")
            return
        self._candidate = tracked
        self._emit("on_tracked_region_updated", tracked)
        # OCR reads the last confirmed region; the refined one is for display.
        self.extractor.extract_async(frame, seed, self._emit_card_number)

    def process_frame(self, frame: np.ndarray) -> TrackerState:
        self._emit("on_overlay_clear_requested")
        if self._candidate is None:
            self._acquire(frame)
        else:
            self._follow(frame)
        return self.state
