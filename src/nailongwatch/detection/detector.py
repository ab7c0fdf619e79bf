"""
Detection pipeline: encode, infer, decode and suppress.

Inference is the only step that leaves the event loop (it runs in a worker
thread); encoding, decoding, suppression and compositing are plain
synchronous calls.
"""

from __future__ import annotations

import asyncio
from typing import Sequence

from PIL import Image

from nailongwatch.configuration.settings import DetectionSettings
from nailongwatch.datatypes.detection_datatypes import Detection
from nailongwatch.detection.compositor import POSITIVE_LABEL, composite_detections
from nailongwatch.detection.inference import InferenceEngine
from nailongwatch.detection.suppression import non_max_suppression
from nailongwatch.detection.tensor_codec import decode_output, encode_image
from nailongwatch.errors import InferenceFailure, NailongWatchError
from nailongwatch.util.logger import get_logger

logger = get_logger("detector")


def positive_confidence(detections: Sequence[Detection]) -> float:
    """Highest confidence among positive-label detections, 0.0 if none."""
    return max((det.confidence for det in detections if det.label == POSITIVE_LABEL), default=0.0)


class NailongDetector:
    """
    Runs the model over one image at a time.

    Attributes:
        engine (InferenceEngine): Shared inference capability.
        settings (DetectionSettings): Input size, thresholds and labels.
    """

    def __init__(self, engine: InferenceEngine, settings: DetectionSettings | None = None) -> None:
        self.engine = engine
        self.settings = settings or DetectionSettings()

    async def _infer(self, tensor):
        try:
            return await asyncio.to_thread(self.engine.infer, tensor)
        except NailongWatchError:
            raise
        except Exception as exc:
            raise InferenceFailure(str(exc)) from exc

    async def detect(self, image: Image.Image) -> list[Detection]:
        """
        Return the suppressed detections for an image.

        Raises:
            InvalidImage: If the image cannot be encoded.
            InferenceFailure: If the engine fails or its output is malformed.
        """
        settings = self.settings
        tensor = encode_image(image, settings.input_size)
        rows = await self._infer(tensor)
        candidates = decode_output(
            rows,
            image.size,
            settings.labels,
            input_size=settings.input_size,
            confidence_floor=settings.confidence_floor,
        )
        detections = non_max_suppression(candidates, settings.iou_threshold)
        logger.debug(
            "[DETECTOR] %d candidates, %d kept after suppression",
            len(candidates),
            len(detections),
        )
        return detections

    async def annotate(self, image: Image.Image) -> tuple[Image.Image, float]:
        """Detect and return the composited audit image with its max confidence."""
        detections = await self.detect(image)
        return composite_detections(image, detections)
