# cardscan/pipeline/dispatcher.py
from __future__ import annotations
from typing import Optional
import logging
import queue
import threading
import numpy as np

from cardscan.tracking.tracker import CardTracker

log = logging.getLogger(__name__)


class FrameDispatcher:
    """
    Feeds frames to a CardTracker one at a time on a dedicated thread.

    The queue is bounded and submit() blocks when it is full: tracking loses
    the card if frames are skipped, so backpressure goes to the producer.
    A None item is the end-of-stream sentinel; nothing is queued after it.
    """

    def __init__(self, tracker: CardTracker, *, max_pending: int = 4):
        self.tracker = tracker
        self._q: "queue.Queue[Optional[np.ndarray]]" = queue.Queue(maxsize=max(1, int(max_pending)))
        self._thread: Optional[threading.Thread] = None
        self._accepting = False
        # covers the _accepting check and the put in submit(); stop() takes it for the sentinel
        self._submit_lock = threading.Lock()
        self.frames_processed = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def __enter__(self) -> "FrameDispatcher":
        self.start()
        return self

    def __exit__(self, *exc) -> None:
        self.stop(wait=True)

    def start(self) -> None:
        with self._submit_lock:
            if self.running:
                return
            self._accepting = True
            self._thread = threading.Thread(target=self._loop, name="frame-dispatcher", daemon=True)
            self._thread.start()
        log.debug("[dispatch] started")

    def submit(self, frame: np.ndarray, timeout: Optional[float] = None) -> bool:
        """Queue one frame; the caller must not modify it afterwards."""
        with self._submit_lock:
            if not self._accepting:
                log.warning("[dispatch] not running, frame dropped")
                return False
            try:
                self._q.put(frame, timeout=timeout)
            except queue.Full:
                log.warning("[dispatch] queue full after %.2fs, frame dropped", timeout or 0.0)
                return False
        return True

    def join(self) -> None:
        """Block until every submitted frame has been processed."""
        self._q.join()

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        with self._submit_lock:
            if not self._accepting:
                return
            self._accepting = False
            self._q.put(None)
        if wait and self._thread is not None:
            self._thread.join(timeout=timeout)
        log.debug("[dispatch] stopped after %d frames", self.frames_processed)

    def _loop(self) -> None:
        while True:
            frame = self._q.get()
            try:
                if frame is None:
                    break  # end of stream
                self.tracker.process_frame(frame)
                self.frames_processed += 1
            except Exception:
                log.exception("[dispatch] frame %d failed", self.frames_processed)
            finally:
                self._q.task_done()
