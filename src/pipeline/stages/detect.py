"""
Detect stage: locate the watermark rectangle in a target image.

Runs the shared inference backend, decodes the best proposal and maps it
onto an (unclamped) rectangle with the configured region policy.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from algorithms.decoder import decode, max_confidence
from algorithms.region import RegionPolicy
from errors import InferenceError, ModelLoadError
from inference.provider import BackendProvider
from models.detection import Proposal, Rectangle


@dataclass
class DetectStageConfig:
    """
    Configuration for the detect stage.

    Attributes:
        confidence_threshold: Minimum best-proposal confidence.
        padding_ratio: Padding passed to the region policy.
    """
    confidence_threshold: float = 0.4
    padding_ratio: float = 0.1


@dataclass(frozen=True)
class Detection:
    """
    What the detect stage found in one image.

    `proposal` and `rectangle` are None when nothing passed the threshold;
    `max_confidence` is always set.
    """
    max_confidence: float
    proposal: Optional[Proposal] = None
    rectangle: Optional[Rectangle] = None

    @property
    def found(self) -> bool:
        return self.rectangle is not None


class DetectStage:
    """
    Pipeline stage that turns an image into a watermark rectangle.

    Example:
        stage = DetectStage(config, provider, policy)
        detection = stage.process(image)
        if detection.found:
            ...
    """

    def __init__(
        self,
        config: DetectStageConfig,
        backend_provider: BackendProvider,
        region_policy: RegionPolicy,
    ):
        self._config = config
        self._provider = backend_provider
        self._policy = region_policy

    @property
    def confidence_threshold(self) -> float:
        return self._config.confidence_threshold

    def _infer(self, image: np.ndarray) -> np.ndarray:
        backend = self._provider.get()
        try:
            return backend.infer(image)
        except (InferenceError, ModelLoadError):
            raise
        except Exception as e:
            raise InferenceError(f"Inference backend error: {e}") from e

    def process(self, image: np.ndarray) -> Detection:
        """
        Detect the watermark in a single image.

        Raises:
            InferenceError: If inference fails or the tensor is degenerate.
        """
        tensor = self._infer(image)
        proposal = decode(tensor, self._config.confidence_threshold)
        if proposal is None:
            return Detection(max_confidence=max_confidence(tensor))

        image_h, image_w = image.shape[:2]
        rect = self._policy.map_to_rectangle(
            proposal,
            image_w,
            image_h,
            padding_ratio=self._config.padding_ratio,
        )
        logging.debug(
            f"Best proposal #{proposal.index} conf={proposal.confidence:.3f} "
            f"box={proposal.as_tuple()[:4]} -> {rect}"
        )
        return Detection(max_confidence=proposal.confidence, proposal=proposal, rectangle=rect)
