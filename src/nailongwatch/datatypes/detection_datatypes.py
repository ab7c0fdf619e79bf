"""
Value types produced by the detection pipeline.

Boxes live in source-image pixel coordinates. Both types are frozen so a
detection cannot change after the decoder creates it.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """
    Axis-aligned box with corner coordinates.

    Attributes:
        x1 (float): Left edge.
        y1 (float): Top edge.
        x2 (float): Right edge, never smaller than ``x1`` when built via
            :meth:`from_center`.
        y2 (float): Bottom edge, never smaller than ``y1`` when built via
            :meth:`from_center`.
    """

    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def from_center(cls, cx: float, cy: float, width: float, height: float) -> "BoundingBox":
        """
        Build a box from its center and size.

        Negative sizes, which a model can emit, are clamped to zero so the
        result is a degenerate box rather than an inverted one.
        """
        half_w = max(width, 0.0) / 2.0
        half_h = max(height, 0.0) / 2.0
        return cls(cx - half_w, cy - half_h, cx + half_w, cy + half_h)

    @property
    def width(self) -> float:
        return max(self.x2 - self.x1, 0.0)

    @property
    def height(self) -> float:
        return max(self.y2 - self.y1, 0.0)

    def area(self) -> float:
        return self.width * self.height

    def as_xyxy(self) -> tuple[float, float, float, float]:
        return (self.x1, self.y1, self.x2, self.y2)


@dataclass(frozen=True, slots=True)
class Detection:
    """A single labelled box with the model's confidence in ``[0, 1]``."""

    box: BoundingBox
    label: str
    confidence: float
