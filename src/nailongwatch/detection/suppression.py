"""Greedy non-maximum suppression over decoded detections."""

from __future__ import annotations

from typing import Iterable

from nailongwatch.datatypes.detection_datatypes import BoundingBox, Detection

IOU_THRESHOLD = 0.7


def intersection(a: BoundingBox, b: BoundingBox) -> float:
    """Overlapping area of two boxes; disjoint boxes give 0.0."""
    overlap_w = max(min(a.x2, b.x2) - max(a.x1, b.x1), 0.0)
    overlap_h = max(min(a.y2, b.y2) - max(a.y1, b.y1), 0.0)
    return overlap_w * overlap_h


def union(a: BoundingBox, b: BoundingBox) -> float:
    return a.area() + b.area() - intersection(a, b)


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """Intersection over union, 0.0 when both boxes are degenerate."""
    combined = union(a, b)
    if combined <= 0.0:
        return 0.0
    return intersection(a, b) / combined


def non_max_suppression(
    detections: Iterable[Detection],
    iou_threshold: float = IOU_THRESHOLD,
) -> list[Detection]:
    """
    Keep the most confident detections, dropping heavy overlaps.

    Candidates are visited in descending confidence (ties keep their input
    order). Each accepted detection removes every remaining candidate whose
    IoU with it is ``>= iou_threshold``. Labels are ignored: all boxes compete
    with each other regardless of class.

    Args:
        detections: Unsuppressed candidates.
        iou_threshold: Overlap at or above which a candidate is discarded.

    Returns:
        list[Detection]: Accepted detections in acceptance order. The items
        are the input objects themselves, not copies.
    """
    remaining = sorted(detections, key=lambda det: det.confidence, reverse=True)
    accepted: list[Detection] = []

    while remaining:
        best = remaining.pop(0)
        accepted.append(best)
        remaining = [det for det in remaining if iou(best.box, det.box) < iou_threshold]

    return accepted
