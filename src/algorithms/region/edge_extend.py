"""
Edge-extend policy for right-aligned watermarks.

The detector often captures only the left part of a watermark that sits in
the bottom-right corner. When the detection center lies in the right half of
the model input, the rectangle is stretched so its right edge reaches the
image edge. Otherwise the padded width is multiplied by a fixed factor to
cover the same kind of partial detection on the left or in the middle.

Padding is applied to the left, top and bottom only; the right side is
always decided by the rules above.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict

from models.detection import Rectangle
from .base import RegionPolicy, RegionPolicyConfig, ScaledBox, round_half_up


@dataclass
class EdgeExtendConfig(RegionPolicyConfig):
    """
    Configuration for the edge-extend policy.

    Attributes:
        widen_factor: Width multiplier for detections centered in the left half.
    """
    widen_factor: float = 3.5


class EdgeExtendPolicy(RegionPolicy):
    """Extend right-half detections to the image edge, widen the rest."""

    name = "edge_extend"

    def __init__(self, config: EdgeExtendConfig):
        super().__init__(config)
        if config.widen_factor <= 0:
            raise ValueError(f"widen_factor must be positive, got {config.widen_factor}")
        self._edge_config = config

    @property
    def widen_factor(self) -> float:
        return self._edge_config.widen_factor

    def is_right_half(self, box: ScaledBox) -> bool:
        return box.model_center_x > self.input_size / 2

    def _finish(
        self,
        box: ScaledBox,
        pad_w: float,
        pad_h: float,
        image_width: int,
        image_height: int,
    ) -> Rectangle:
        x = round_half_up(box.x - pad_w)
        y = round_half_up(box.y - pad_h)
        height = round_half_up(box.height + 2 * pad_h)

        if self.is_right_half(box):
            width = image_width - x
            logging.debug(f"Edge-extend: right-half detection, width stretched to edge ({width}px)")
        else:
            width = round_half_up((box.width + 2 * pad_w) * self.widen_factor)
            logging.debug(f"Edge-extend: left/center detection, width x{self.widen_factor} ({width}px)")

        return Rectangle(x=x, y=y, width=width, height=height)


def create_edge_extend_policy_from_config(
    removal_cfg: Dict[str, Any],
    input_size: int,
) -> EdgeExtendPolicy:
    """Factory: build the policy from the `removal` config section."""
    return EdgeExtendPolicy(
        EdgeExtendConfig(
            input_size=input_size,
            padding_ratio=float(removal_cfg.get("padding_ratio", 0.1)),
            widen_factor=float(removal_cfg.get("widen_factor", 3.5)),
        )
    )
