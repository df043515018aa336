#!/usr/bin/env python3
from __future__ import annotations
import argparse
import logging
import sys
import cv2
import numpy as np

from cardscan.core.config import load_config
from cardscan.core.contracts import BoundingBox
from cardscan.core.log import configure_logging
from cardscan.io.ingest import iter_video_frames
from cardscan.pipeline.events import EventChannel, EventKind
from cardscan.pipeline.factory import build_pipeline
from cardscan.validate.checksum import mask_card_number

log = logging.getLogger("scan_video")

WINDOW = "cardscan"


def draw_region(img: np.ndarray, region: BoundingBox, color=(0, 255, 0), thickness=5) -> None:
    H, W = img.shape[:2]
    x0, y0, x1, y1 = region.to_px(W, H)
    cv2.rectangle(img, (x0, y0), (x1, y1), color, thickness, lineType=cv2.LINE_AA)


def main() -> int:
    ap = argparse.ArgumentParser(description="Scan a video file or camera for a payment card number.")
    ap.add_argument("source", help="Video file path or camera index (e.g. 0).")
    ap.add_argument("--config", default=None, help="YAML config (default: config/scanner.yaml).")
    ap.add_argument("--show", action="store_true", help="Show frames with the tracked card outlined.")
    ap.add_argument("--debug", action="store_true", help="Debug logging.")
    ap.add_argument("--log", default=None, help="Also write the log to this file.")
    ap.add_argument("--max-frames", type=int, default=None)
    ap.add_argument("--exit-on-found", action="store_true", help="Stop after the first valid number.")
    args = ap.parse_args()

    cfg = load_config(args.config)
    log_cfg = cfg.get("logging") or {}
    configure_logging("DEBUG" if args.debug else log_cfg.get("level", "INFO"),
                      args.log or log_cfg.get("file"))

    channel = EventChannel()
    pipe = build_pipeline(cfg, observers=[channel])
    overlay = None
    found = []

    pipe.dispatcher.start()
    try:
        for frame in iter_video_frames(args.source, args.max_frames):
            # the dispatcher owns the frame from here on; keep a copy for drawing
            shown = frame.copy() if args.show else None
            pipe.dispatcher.submit(frame)

            for ev in channel.drain():
                if ev.kind is EventKind.OVERLAY_CLEAR:
                    overlay = None
                elif ev.kind is EventKind.REGION_UPDATED:
                    overlay = ev.region
                elif ev.kind is EventKind.CARD_NUMBER_FOUND:
                    found.append(ev.number)
                    print(f"[FOUND] card number {mask_card_number(ev.number)}")

            if shown is not None:
                if overlay is not None:
                    draw_region(shown, overlay)
                cv2.imshow(WINDOW, shown)
                if cv2.waitKey(1) & 0xFF in (27, ord("q")):
                    break
            if found and args.exit_on_found:
                break
    except RuntimeError as e:
        log.error("%s", e)
        return 2
    finally:
        pipe.close(wait=True)
        if args.show:
            cv2.destroyAllWindows()

    for ev in channel.drain():
        if ev.kind is EventKind.CARD_NUMBER_FOUND:
            found.append(ev.number)
            print(f"[FOUND] card number {mask_card_number(ev.number)}")

    print(f"[DONE] {pipe.dispatcher.frames_processed} frames, {len(found)} card number reads")
    return 0 if found else 1


if __name__ == "__main__":
    sys.exit(main())
