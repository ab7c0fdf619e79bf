"""
Inference engines consumed by the detector.

The detector only depends on :class:`InferenceEngine`: a callable turning the
``(1, 3, S, S)`` input tensor into candidate rows ``(N, 4 + num_classes)``.
:class:`OnnxInferenceEngine` provides that over an ONNX Runtime session
exported from a YOLOv8-style model.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import numpy as np
import onnxruntime as ort

from nailongwatch.configuration.settings import DetectionSettings
from nailongwatch.errors import InferenceFailure
from nailongwatch.util.logger import get_logger

logger = get_logger("inference")


class InferenceEngine(Protocol):
    """Stateless capability: input tensor in, candidate rows out."""

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        ...


class OnnxInferenceEngine:
    """
    ONNX Runtime session shared read-only by every handling unit.

    ``InferenceSession.run`` is safe to call from several threads at once, so
    one engine instance serves concurrent requests without locking.
    """

    def __init__(self, model_path: str | Path, intra_threads: int = 4) -> None:
        self.model_path = Path(model_path)
        options = ort.SessionOptions()
        options.graph_optimization_level = ort.GraphOptimizationLevel.ORT_ENABLE_ALL
        options.intra_op_num_threads = intra_threads

        try:
            self.session = ort.InferenceSession(str(self.model_path), sess_options=options)
        except Exception as exc:
            raise InferenceFailure(f"failed to load model {self.model_path}: {exc}") from exc

        self.input_name = self.session.get_inputs()[0].name
        logger.info("[INFERENCE] Loaded model %s (input=%s)", self.model_path, self.input_name)

    @classmethod
    def from_settings(cls, settings: DetectionSettings) -> "OnnxInferenceEngine":
        return cls(settings.model_path, intra_threads=settings.intra_threads)

    def infer(self, tensor: np.ndarray) -> np.ndarray:
        """
        Run the model and return one row per candidate.

        The raw YOLOv8 output is ``(1, 4 + num_classes, N)``; the batch axis is
        dropped and the rest transposed to ``(N, 4 + num_classes)``.
        """
        try:
            outputs = self.session.run(None, {self.input_name: tensor})
        except Exception as exc:
            raise InferenceFailure(f"model run failed: {exc}") from exc

        predictions = np.asarray(outputs[0])
        if predictions.ndim == 3:
            predictions = predictions[0]
        if predictions.ndim != 2:
            raise InferenceFailure(f"unexpected model output shape {predictions.shape}")
        return predictions.T
