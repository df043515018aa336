"""
Core contracts and simple data types shared across stages.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple
import numpy as np

# ID-1 card (ISO/IEC 7810): 85.60 × 53.98 mm
PAYMENT_CARD_ASPECT = 85.60 / 53.98

Point = Tuple[float, float]


def card_aspect_range(aspect: float = PAYMENT_CARD_ASPECT,
                      low_tol: float = 0.05,
                      high_tol: float = 0.10) -> Tuple[float, float]:
    """(min, max) long/short side ratio accepted for a card-shaped rectangle."""
    return aspect * (1.0 - low_tol), aspect * (1.0 + high_tol)


class TrackerState(Enum):
    IDLE = "idle"
    TRACKING = "tracking"


@dataclass(frozen=True)
class BoundingBox:
    """
    A rectangle in normalized frame coordinates ([0, 1], origin top-left,
    y grows downward).

    corners: optional skewed quad, normalized, ordered clockwise:
    (top-left, top-right, bottom-right, bottom-left).
    """
    x: float
    y: float
    width: float
    height: float
    corners: Optional[Tuple[Point, Point, Point, Point]] = None

    @property
    def x1(self) -> float:
        return self.x + self.width

    @property
    def y1(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)

    def contains(self, other: "BoundingBox", eps: float = 1e-9) -> bool:
        return (other.x + eps >= self.x and other.y + eps >= self.y
                and other.x1 <= self.x1 + eps and other.y1 <= self.y1 + eps)

    def iou(self, other: "BoundingBox") -> float:
        iw = min(self.x1, other.x1) - max(self.x, other.x)
        ih = min(self.y1, other.y1) - max(self.y, other.y)
        if iw <= 0 or ih <= 0:
            return 0.0
        inter = iw * ih
        union = self.area + other.area - inter
        return inter / union if union > 0 else 0.0

    def to_px(self, frame_w: int, frame_h: int) -> Tuple[int, int, int, int]:
        return (round(self.x * frame_w), round(self.y * frame_h),
                round(self.x1 * frame_w), round(self.y1 * frame_h))

    @classmethod
    def from_px(cls, x0: float, y0: float, x1: float, y1: float,
                frame_w: int, frame_h: int,
                corners_px: Optional[np.ndarray] = None) -> "BoundingBox":
        def nx(v: float) -> float:
            return min(1.0, max(0.0, float(v) / frame_w))

        def ny(v: float) -> float:
            return min(1.0, max(0.0, float(v) / frame_h))

        corners = None
        if corners_px is not None:
            q = np.asarray(corners_px, np.float32).reshape(4, 2)
            corners = tuple((nx(px), ny(py)) for px, py in q)  # type: ignore[assignment]
        return cls(x=nx(x0), y=ny(y0), width=nx(x1) - nx(x0), height=ny(y1) - ny(y0),
                   corners=corners)

    @classmethod
    def from_quad(cls, pts: np.ndarray, frame_shape) -> "BoundingBox":
        H, W = frame_shape[:2]
        q = np.asarray(pts, np.float32).reshape(4, 2)
        x0, y0 = q.min(axis=0)
        x1, y1 = q.max(axis=0)
        return cls.from_px(x0, y0, x1, y1, W, H, corners_px=q)
