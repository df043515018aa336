# cardscan/pipeline/factory.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from cardscan.core.contracts import PAYMENT_CARD_ASPECT, card_aspect_range
from cardscan.core.ports import ScanObserver, TextRecognizer, VisionBackend
from cardscan.ocr.extraction import DEFAULT_TOP_CANDIDATES, CardNumberExtractor
from cardscan.pipeline.dispatcher import FrameDispatcher
from cardscan.tracking.tracker import CardTracker


@dataclass
class Pipeline:
    tracker: CardTracker
    extractor: CardNumberExtractor
    dispatcher: FrameDispatcher

    def close(self, wait: bool = True) -> None:
        self.dispatcher.stop(wait=wait)
        self.extractor.shutdown(wait=wait)


def build_pipeline(cfg: Optional[Dict] = None, *,
                   vision: Optional[VisionBackend] = None,
                   recognizer: Optional[TextRecognizer] = None,
                   observers: Iterable[ScanObserver] = ()) -> Pipeline:
    """Wire backend -> extractor -> tracker -> dispatcher from one config dict."""
    cfg = cfg or {}
    if vision is None:
        from cardscan.vision.opencv_backend import OpenCVVisionBackend
        vision = OpenCVVisionBackend(cfg)
    if recognizer is None:
        from cardscan.ocr.recognizer import TesseractRecognizer
        recognizer = TesseractRecognizer(cfg.get("ocr"))

    ex_cfg = cfg.get("extraction") or {}
    extractor = CardNumberExtractor(
        recognizer,
        top_candidates=int(ex_cfg.get("top_candidates", DEFAULT_TOP_CANDIDATES)),
        max_workers=int(ex_cfg.get("max_workers", 2)),
    )

    card = cfg.get("card") or {}
    aspect_range = card_aspect_range(
        float(card.get("aspect", PAYMENT_CARD_ASPECT)),
        float(card.get("low_tol", 0.05)),
        float(card.get("high_tol", 0.10)),
    )
    tracker = CardTracker(vision, extractor, observers=observers, aspect_range=aspect_range)

    pipe_cfg = cfg.get("pipeline") or {}
    dispatcher = FrameDispatcher(tracker, max_pending=int(pipe_cfg.get("max_pending", 4)))
    return Pipeline(tracker=tracker, extractor=extractor, dispatcher=dispatcher)
