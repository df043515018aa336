"""
Shared fakes for the scanning pipeline tests: a scripted vision backend,
a canned recognizer, an observer that records events, and an executor
that runs work inline.
"""
from __future__ import annotations
import threading
from collections import deque
from concurrent.futures import Executor, Future

import numpy as np
import pytest

from cardscan.core.contracts import BoundingBox

CARD = BoundingBox(0.10, 0.20, 0.60, 0.38)
CARD_MOVED = BoundingBox(0.12, 0.21, 0.60, 0.38)
TEXT_INSIDE = BoundingBox(0.20, 0.35, 0.40, 0.06)
TEXT_OUTSIDE = BoundingBox(0.75, 0.80, 0.20, 0.05)


class ScriptedVision:
    """Each capability returns the next scripted result (None / [] when the script runs out)."""

    def __init__(self, detections=(), texts=(), tracks=()):
        self.detections = deque(detections)
        self.texts = deque(texts)
        self.tracks = deque(tracks)
        self.calls = []

    @staticmethod
    def _next(q, default):
        if not q:
            return default
        r = q.popleft()
        if isinstance(r, Exception):
            raise r
        return r

    def detect_rectangle(self, frame, aspect_range):
        self.calls.append(("detect_rectangle", aspect_range))
        return self._next(self.detections, None)

    def detect_text_regions(self, frame):
        self.calls.append(("detect_text_regions",))
        return self._next(self.texts, [])

    def track_rectangle(self, frame, seed):
        self.calls.append(("track_rectangle", seed))
        return self._next(self.tracks, None)


class CannedRecognizer:
    def __init__(self, readings=(), error=None):
        self.readings = list(readings)
        self.error = error
        self.calls = []

    def recognize_text(self, image, top_candidates):
        self.calls.append((image, top_candidates))
        if self.error is not None:
            raise self.error
        return list(self.readings)


class SpyExtractor:
    """Stands in for CardNumberExtractor and records every dispatch."""

    def __init__(self):
        self.dispatched = []

    def extract_async(self, frame, region, on_result):
        self.dispatched.append(region)
        f = Future()
        f.set_result(None)
        return f


class RecordingObserver:
    def __init__(self):
        self.events = []
        self._lock = threading.Lock()

    def on_card_number_found(self, digits):
        with self._lock:
            self.events.append(("number", digits))

    def on_tracked_region_updated(self, region):
        with self._lock:
            self.events.append(("region", region))

    def on_overlay_clear_requested(self):
        with self._lock:
            self.events.append(("clear",))

    def kinds(self):
        return [e[0] for e in self.events]


class InlineExecutor(Executor):
    def submit(self, fn, *args, **kwargs):
        f = Future()
        try:
            f.set_result(fn(*args, **kwargs))
        except Exception as e:
            f.set_exception(e)
        return f


@pytest.fixture
def frame():
    return np.full((120, 200, 3), 128, np.uint8)


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def inline_executor():
    return InlineExecutor()
