"""
Simple I/O helpers for reading images and video frames (BGR, as OpenCV expects).
"""

from __future__ import annotations
from typing import Iterator, Optional, Union
import logging
import cv2
import numpy as np

log = logging.getLogger(__name__)


def load_image(path: str) -> np.ndarray:
    """
    Load an image from disk (BGR).
    Raises FileNotFoundError if not found.
    """
    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        raise FileNotFoundError(f"Could not read image at: {path}")
    return img


def iter_video_frames(source: Union[str, int], max_frames: Optional[int] = None) -> Iterator[np.ndarray]:
    """
    Yield BGR frames from a video file or camera index ("0" counts as index 0).
    Raises RuntimeError if the source cannot be opened.
    """
    if isinstance(source, str) and source.isdigit():
        source = int(source)
    cap = cv2.VideoCapture(source)
    if not cap.isOpened():
        cap.release()
        raise RuntimeError(f"Could not open video source: {source}")
    n = 0
    try:
        while max_frames is None or n < max_frames:
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            n += 1
            yield frame
    finally:
        cap.release()
        log.debug("[ingest] %d frames read from %s", n, source)
