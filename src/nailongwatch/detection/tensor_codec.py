"""
Conversion between PIL images, model input tensors and decoded detections.

The model takes a square ``S x S`` RGB tensor (S = 640). Images are stretched
to that size without preserving the aspect ratio, so very wide or tall images
see distorted shapes; boxes are mapped back with independent x and y ratios.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from PIL import Image

from nailongwatch.datatypes.detection_datatypes import BoundingBox, Detection
from nailongwatch.errors import InferenceFailure, InvalidImage

MODEL_INPUT_SIZE = 640
CONFIDENCE_FLOOR = 0.3


def encode_image(image: Image.Image, size: int = MODEL_INPUT_SIZE) -> np.ndarray:
    """Encode an image as a normalized ``(1, 3, size, size)`` float32 tensor.

    Args:
        image: Decoded source image in any PIL mode.
        size: Edge length of the square model input.

    Returns:
        np.ndarray: Channel-first RGB tensor with values in ``[0, 1]``.

    Raises:
        InvalidImage: If the image has a zero width or height.
    """
    width, height = image.size
    if width <= 0 or height <= 0:
        raise InvalidImage(f"cannot encode an image of size {width}x{height}")

    resized = image.convert("RGB").resize((size, size), Image.Resampling.BICUBIC)
    pixels = np.asarray(resized, dtype=np.float32) / 255.0
    return np.ascontiguousarray(pixels.transpose(2, 0, 1)[np.newaxis, ...])


def _label_for(class_id: int, labels: Sequence[str]) -> str:
    if class_id < len(labels):
        return labels[class_id]
    return f"class_{class_id}"


def decode_output(
    rows: np.ndarray,
    original_size: tuple[int, int],
    labels: Sequence[str],
    input_size: int = MODEL_INPUT_SIZE,
    confidence_floor: float = CONFIDENCE_FLOOR,
) -> list[Detection]:
    """Turn raw candidate rows into detections in source-image coordinates.

    Each row is ``(cx, cy, w, h, score_0, score_1, ...)`` in model input
    space. The winning class is the first index holding the maximum score.
    Rows whose winning score is below ``confidence_floor``, and rows holding
    any NaN or infinite value, are dropped.

    Args:
        rows: Array of shape ``(N, 4 + num_classes)``.
        original_size: ``(width, height)`` of the image before resizing.
        labels: Class names indexed by class id.
        input_size: Edge length the image was resized to.
        confidence_floor: Minimum winning score for a row to be kept.

    Returns:
        list[Detection]: Unordered, unsuppressed candidates.

    Raises:
        InferenceFailure: If the rows do not carry any class score.
    """
    candidates = np.asarray(rows, dtype=np.float32)
    if candidates.size == 0:
        return []
    if candidates.ndim != 2 or candidates.shape[1] < 5:
        raise InferenceFailure(f"unexpected model output shape {candidates.shape}")

    original_width, original_height = original_size
    detections: list[Detection] = []

    for row in candidates:
        # Rows with NaN or inf anywhere are unusable
        if not np.isfinite(row).all():
            continue
        scores = row[4:]
        # np.argmax returns the first occurrence of the maximum
        class_id = int(np.argmax(scores))
        confidence = float(scores[class_id])
        if confidence < confidence_floor:
            continue

        cx = float(row[0]) / input_size * original_width
        cy = float(row[1]) / input_size * original_height
        w = float(row[2]) / input_size * original_width
        h = float(row[3]) / input_size * original_height

        detections.append(
            Detection(
                box=BoundingBox.from_center(cx, cy, w, h),
                label=_label_for(class_id, labels),
                confidence=confidence,
            )
        )

    return detections
