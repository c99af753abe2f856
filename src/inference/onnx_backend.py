"""
ONNX Runtime inference backend.

Runs an exported YOLO-style watermark detector and returns its first output
unchanged. Both NCHW and NHWC exports are supported; the layout is read from
the model's declared input shape.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List

import numpy as np

from errors import InferenceError, ModelLoadError
from .backend import InferenceBackend, preprocess_image


@dataclass(frozen=True)
class OnnxConfig:
    model: str
    input_size: int = 640
    providers: List[str] = field(default_factory=lambda: ["CPUExecutionProvider"])


class OnnxBackend(InferenceBackend):
    def __init__(self, cfg: OnnxConfig):
        self.cfg = cfg
        self.input_size = cfg.input_size

        if not os.path.exists(cfg.model):
            raise ModelLoadError(f"Model file not found: {cfg.model}")

        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ModelLoadError(
                "onnxruntime is not installed. Install with `pip install onnxruntime`."
            ) from e

        try:
            self._session = ort.InferenceSession(cfg.model, providers=list(cfg.providers))
        except Exception as e:
            raise ModelLoadError(f"Failed to load model {cfg.model}: {e}") from e

        model_input = self._session.get_inputs()[0]
        self._input_name = model_input.name
        shape = list(model_input.shape)
        # NHWC exports (e.g. converted from TFLite) put the 3 channels last
        self._channels_first = not (len(shape) == 4 and shape[-1] == 3)

        logging.info(
            f"ONNX model loaded: {cfg.model} input={self._input_name}{shape} "
            f"providers={self._session.get_providers()}"
        )

    @property
    def channels_first(self) -> bool:
        return self._channels_first

    def infer(self, image: np.ndarray) -> np.ndarray:
        blob = preprocess_image(image, self.input_size, channels_first=self._channels_first)
        try:
            outputs = self._session.run(None, {self._input_name: blob})
        except Exception as e:
            raise InferenceError(f"Inference failed: {e}") from e
        if not outputs:
            raise InferenceError("Model returned no outputs")
        return np.asarray(outputs[0], dtype=np.float32)
