# cardscan/pipeline/events.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional
import queue
import time

from cardscan.core.contracts import BoundingBox


class EventKind(Enum):
    CARD_NUMBER_FOUND = "card_number_found"
    REGION_UPDATED = "region_updated"
    OVERLAY_CLEAR = "overlay_clear"


@dataclass(frozen=True)
class ScanEvent:
    kind: EventKind
    region: Optional[BoundingBox] = None
    number: Optional[str] = None
    timestamp: float = field(default_factory=time.monotonic)


class EventChannel:
    """
    Observer that turns scan callbacks into ScanEvents on a thread-safe queue.

    Callbacks arrive on the frame thread and the OCR workers; the UI thread
    consumes them with poll() or drain().
    """

    def __init__(self, maxsize: int = 0):
        self._q: "queue.Queue[ScanEvent]" = queue.Queue(maxsize=maxsize)

    def on_card_number_found(self, digits: str) -> None:
        self._q.put(ScanEvent(EventKind.CARD_NUMBER_FOUND, number=digits))

    def on_tracked_region_updated(self, region: BoundingBox) -> None:
        self._q.put(ScanEvent(EventKind.REGION_UPDATED, region=region))

    def on_overlay_clear_requested(self) -> None:
        self._q.put(ScanEvent(EventKind.OVERLAY_CLEAR))

    def poll(self, timeout: Optional[float] = None) -> Optional[ScanEvent]:
        try:
            return self._q.get(timeout=timeout) if timeout else self._q.get_nowait()
        except queue.Empty:
            return None

    def drain(self) -> List[ScanEvent]:
        out = []
        while True:
            ev = self.poll()
            if ev is None:
                return out
            out.append(ev)


class CallbackObserver:
    """Adapts plain callables to the observer interface; missing ones are ignored."""

    def __init__(self,
                 on_number: Optional[Callable[[str], None]] = None,
                 on_region: Optional[Callable[[BoundingBox], None]] = None,
                 on_clear: Optional[Callable[[], None]] = None):
        self._on_number = on_number
        self._on_region = on_region
        self._on_clear = on_clear

    def on_card_number_found(self, digits: str) -> None:
        if self._on_number:
            self._on_number(digits)

    def on_tracked_region_updated(self, region: BoundingBox) -> None:
        if self._on_region:
            self._on_region(region)

    def on_overlay_clear_requested(self) -> None:
        if self._on_clear:
            self._on_clear()
