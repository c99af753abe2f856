"""
Region policy interface.

A region policy maps the selected proposal (model input space) onto a pixel
rectangle in the target image. All policies share the same normalization,
scaling and padding steps and differ only in how the final width is chosen.

Policies never clamp; clamping belongs to the compositor.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from models.detection import Proposal, Rectangle


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class ScaledBox:
    """
    A detection box scaled to target image pixels, before padding.

    Attributes:
        x: Left edge.
        y: Top edge.
        width: Box width.
        height: Box height.
        model_center_x: Center x in model input pixels (used for side decisions).
    """
    x: float
    y: float
    width: float
    height: float
    model_center_x: float


def to_model_pixels(proposal: Proposal, input_size: int) -> Tuple[float, float, float, float]:
    """
    Return (cx, cy, w, h) in model input pixels.

    A width below 1.0 means the exporter emitted fractions of the input
    size; all four values are scaled in that case.
    """
    if proposal.is_normalized:
        return (
            proposal.center_x * input_size,
            proposal.center_y * input_size,
            proposal.width * input_size,
            proposal.height * input_size,
        )
    return (proposal.center_x, proposal.center_y, proposal.width, proposal.height)


def scale_to_image(
    proposal: Proposal,
    input_size: int,
    image_width: int,
    image_height: int,
) -> ScaledBox:
    """Convert a center-format proposal into a top-left box in image pixels."""
    cx, cy, w, h = to_model_pixels(proposal, input_size)
    scale_x = image_width / input_size
    scale_y = image_height / input_size

    box_width = w * scale_x
    box_height = h * scale_y
    return ScaledBox(
        x=cx * scale_x - box_width / 2,
        y=cy * scale_y - box_height / 2,
        width=box_width,
        height=box_height,
        model_center_x=cx,
    )


@dataclass
class RegionPolicyConfig:
    """
    Base configuration for region policies.

    Attributes:
        input_size: Side of the square model input in pixels.
        padding_ratio: Fraction of the box size added on each padded side.
    """
    input_size: int = 640
    padding_ratio: float = 0.1


class RegionPolicy(ABC):
    """
    Abstract base class for proposal-to-rectangle mapping.

    Subclasses implement _finish() to choose the final rectangle from the
    scaled box and its padding.
    """

    name = "base"

    def __init__(self, config: RegionPolicyConfig):
        if config.input_size <= 0:
            raise ValueError(f"input_size must be positive, got {config.input_size}")
        self.config = config

    @property
    def input_size(self) -> int:
        return self.config.input_size

    def map_to_rectangle(
        self,
        proposal: Proposal,
        image_width: int,
        image_height: int,
        padding_ratio: Optional[float] = None,
    ) -> Rectangle:
        """
        Map a proposal onto an unclamped rectangle in image pixels.

        Args:
            proposal: Selected proposal in model input space.
            image_width: Target image width in pixels.
            image_height: Target image height in pixels.
            padding_ratio: Overrides the configured padding ratio if given.
        """
        ratio = self.config.padding_ratio if padding_ratio is None else padding_ratio
        box = scale_to_image(proposal, self.input_size, image_width, image_height)
        pad_w = box.width * ratio
        pad_h = box.height * ratio
        return self._finish(box, pad_w, pad_h, image_width, image_height)

    @abstractmethod
    def _finish(
        self,
        box: ScaledBox,
        pad_w: float,
        pad_h: float,
        image_width: int,
        image_height: int,
    ) -> Rectangle:
        ...
