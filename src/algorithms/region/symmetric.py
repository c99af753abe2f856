"""
Symmetric padding policy.

Pads the detected box by the same amount on all four sides.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from models.detection import Rectangle
from .base import RegionPolicy, RegionPolicyConfig, ScaledBox, round_half_up


@dataclass
class SymmetricPaddingConfig(RegionPolicyConfig):
    """Configuration for symmetric padding (no extra fields)."""


class SymmetricPaddingPolicy(RegionPolicy):
    """Rectangle = box grown by padding on every side."""

    name = "symmetric"

    def _finish(
        self,
        box: ScaledBox,
        pad_w: float,
        pad_h: float,
        image_width: int,
        image_height: int,
    ) -> Rectangle:
        return Rectangle(
            x=round_half_up(box.x - pad_w),
            y=round_half_up(box.y - pad_h),
            width=round_half_up(box.width + 2 * pad_w),
            height=round_half_up(box.height + 2 * pad_h),
        )


def create_symmetric_policy_from_config(
    removal_cfg: Dict[str, Any],
    input_size: int,
) -> SymmetricPaddingPolicy:
    """Factory: build the policy from the `removal` config section."""
    return SymmetricPaddingPolicy(
        SymmetricPaddingConfig(
            input_size=input_size,
            padding_ratio=float(removal_cfg.get("padding_ratio", 0.1)),
        )
    )
