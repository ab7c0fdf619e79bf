"""Render detection boxes onto a copy of the source image."""

from __future__ import annotations

from typing import Iterable

import numpy as np
from PIL import Image, ImageDraw

from nailongwatch.datatypes.detection_datatypes import Detection

POSITIVE_LABEL = "nailong"
# Auxiliary class that is never drawn
HIDDEN_LABEL = "xiong"

POSITIVE_COLOR = (255, 0, 0, 255)
MUTED_COLOR = (0x80, 0x10, 0x40, 0x80)
STROKE_WIDTH = 4


def box_color(label: str) -> tuple[int, int, int, int]:
    return POSITIVE_COLOR if label == POSITIVE_LABEL else MUTED_COLOR


def render_overlay(size: tuple[int, int], detections: Iterable[Detection]) -> tuple[Image.Image, float]:
    """
    Draw box outlines on a transparent RGBA canvas.

    Returns the canvas and the highest confidence among the drawn boxes
    (0.0 when nothing was drawn).
    """
    overlay = Image.new("RGBA", size, (0, 0, 0, 0))
    draw = ImageDraw.Draw(overlay)
    half = STROKE_WIDTH / 2
    max_confidence = 0.0

    for detection in detections:
        if detection.label == HIDDEN_LABEL:
            continue
        max_confidence = max(max_confidence, detection.confidence)

        box = detection.box
        # Pillow strokes inward, so grow the rectangle to centre the line on the edge
        outline = [
            round(box.x1 - half),
            round(box.y1 - half),
            round(box.x2 + half) - 1,
            round(box.y2 + half) - 1,
        ]
        if outline[2] < outline[0] or outline[3] < outline[1]:
            continue
        draw.rectangle(outline, outline=box_color(detection.label), width=STROKE_WIDTH)

    return overlay, max_confidence


def merge_overlay(image: Image.Image, overlay: Image.Image) -> Image.Image:
    """Opaque merge: overlay pixels with any alpha win, everything else is the original."""
    base = np.asarray(image.convert("RGB"), dtype=np.uint8)
    layer = np.asarray(overlay, dtype=np.uint8)

    merged = np.empty(base.shape[:2] + (4,), dtype=np.uint8)
    merged[..., :3] = base
    merged[..., 3] = 255

    mask = layer[..., 3] > 0
    merged[mask, :3] = layer[mask, :3]
    return Image.fromarray(merged, "RGBA")


def composite_detections(image: Image.Image, detections: Iterable[Detection]) -> tuple[Image.Image, float]:
    """
    Produce the annotated audit image for a set of detections.

    Args:
        image: Original decoded image; it is not modified.
        detections: Final detections in source-image coordinates.

    Returns:
        tuple[Image.Image, float]: Fully opaque RGBA composite and the maximum
        confidence among the rendered boxes.
    """
    overlay, max_confidence = render_overlay(image.size, detections)
    return merge_overlay(image, overlay), max_confidence
