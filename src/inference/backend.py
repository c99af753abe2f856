"""
Inference backend interface.

Backends take a decoded BGR image and return the raw detection tensor
[1, D1, D2] produced for a square model input. Decoding the tensor is done
elsewhere (algorithms.decoder).
"""

from __future__ import annotations

from typing import Protocol

import cv2
import numpy as np


class InferenceBackend(Protocol):
    input_size: int

    def infer(self, image: np.ndarray) -> np.ndarray:
        ...


def preprocess_image(image: np.ndarray, input_size: int, channels_first: bool = True) -> np.ndarray:
    """
    Prepare an image for a square detection model.

    BGR -> RGB, bilinear resize to input_size x input_size, scale to [0, 1]
    and add the batch dimension.

    Args:
        image: Decoded image (H, W), (H, W, 3) BGR or (H, W, 4) BGRA.
        input_size: Side of the square model input.
        channels_first: NCHW output if True, NHWC otherwise.

    Returns:
        float32 array of shape (1, 3, S, S) or (1, S, S, 3).
    """
    if image.ndim == 2:
        rgb = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    elif image.shape[2] == 4:
        rgb = cv2.cvtColor(image, cv2.COLOR_BGRA2RGB)
    else:
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)

    resized = cv2.resize(rgb, (input_size, input_size), interpolation=cv2.INTER_LINEAR)
    tensor = resized.astype(np.float32) / 255.0
    if channels_first:
        tensor = np.transpose(tensor, (2, 0, 1))
    return np.expand_dims(tensor, axis=0)
