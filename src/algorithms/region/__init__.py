"""
Region policies: map a detection proposal onto a pixel rectangle.

Available policies:
- EdgeExtendPolicy ("edge_extend", default): right-half detections reach the
  right image edge, others are widened by a fixed factor
- SymmetricPaddingPolicy ("symmetric"): equal padding on all sides
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from .base import (
    RegionPolicy,
    RegionPolicyConfig,
    ScaledBox,
    round_half_up,
    scale_to_image,
    to_model_pixels,
)
from .edge_extend import EdgeExtendConfig, EdgeExtendPolicy, create_edge_extend_policy_from_config
from .symmetric import SymmetricPaddingConfig, SymmetricPaddingPolicy, create_symmetric_policy_from_config


def create_region_policy_from_config(removal_cfg: Dict[str, Any], input_size: int) -> RegionPolicy:
    """
    Build the configured region policy.

    Args:
        removal_cfg: The `removal` config section.
        input_size: Model input size in pixels.

    Raises:
        ValueError: If `region_policy` names an unknown policy.
    """
    name = (removal_cfg or {}).get("region_policy", "edge_extend")
    if name == "edge_extend":
        policy = create_edge_extend_policy_from_config(removal_cfg or {}, input_size)
    elif name == "symmetric":
        policy = create_symmetric_policy_from_config(removal_cfg or {}, input_size)
    else:
        raise ValueError(f"Unknown region_policy: {name!r} (expected edge_extend or symmetric)")
    logging.info(f"Region policy: {policy.name} (padding_ratio={policy.config.padding_ratio})")
    return policy


__all__ = [
    "RegionPolicy",
    "RegionPolicyConfig",
    "ScaledBox",
    "round_half_up",
    "scale_to_image",
    "to_model_pixels",
    "EdgeExtendConfig",
    "EdgeExtendPolicy",
    "create_edge_extend_policy_from_config",
    "SymmetricPaddingConfig",
    "SymmetricPaddingPolicy",
    "create_symmetric_policy_from_config",
    "create_region_policy_from_config",
]
