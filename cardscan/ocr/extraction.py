# cardscan/ocr/extraction.py
from __future__ import annotations
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional
import logging
import numpy as np

from cardscan.core.contracts import BoundingBox
from cardscan.core.ports import TextRecognizer
from cardscan.geometry.crop import crop_region
from cardscan.ocr.digits import extract_card_number
from cardscan.validate.checksum import mask_card_number

log = logging.getLogger(__name__)

DEFAULT_TOP_CANDIDATES = 10


class CardNumberExtractor:
    """
    Reads a card number out of a frame region off the frame thread.

    Every extract_async call is independent: nothing is cancelled when a new
    one is submitted, and each produces at most one on_result call.
    """

    def __init__(self, recognizer: TextRecognizer, *,
                 top_candidates: int = DEFAULT_TOP_CANDIDATES,
                 max_workers: int = 2,
                 executor: Optional[ThreadPoolExecutor] = None):
        self.recognizer = recognizer
        self.top_candidates = int(top_candidates)
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers,
                                                        thread_name_prefix="card-number")

    def __enter__(self) -> "CardNumberExtractor":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown(wait=True)

    def extract(self, image: np.ndarray) -> Optional[str]:
        """Recognize text in an already cropped image and return a validated number or None."""
        try:
            texts = self.recognizer.recognize_text(image, self.top_candidates)
        except Exception as e:
            log.warning("[ocr] recognizer error: %s", e)
            return None
        return extract_card_number(texts or [])

    def _run(self, crop: np.ndarray, on_result: Callable[[str], None]) -> Optional[str]:
        number = self.extract(crop)
        if number is None:
            return None
        log.info("[ocr] card number found: %s", mask_card_number(number))
        try:
            on_result(number)
        except Exception:
            log.exception("[ocr] result callback failed")
        return number

    def extract_async(self, frame: np.ndarray, region: BoundingBox,
                      on_result: Callable[[str], None]) -> "Future[Optional[str]]":
        # Crop on the caller's thread: the frame is not ours after this returns.
        crop = crop_region(frame, region)
        if crop is None:
            log.debug("[ocr] empty crop for region %s", region)
            done: "Future[Optional[str]]" = Future()
            done.set_result(None)
            return done
        return self._executor.submit(self._run, crop, on_result)

    def shutdown(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
