"""
Core algorithms: tensor decoding, region mapping and compositing.
"""

from .decoder import decode, infer_layout, max_confidence, proposal_rows
from .compositor import clamp_rectangle, composite, resample_reference
from .region import (
    EdgeExtendPolicy,
    RegionPolicy,
    SymmetricPaddingPolicy,
    create_region_policy_from_config,
)

__all__ = [
    "decode",
    "infer_layout",
    "max_confidence",
    "proposal_rows",
    "clamp_rectangle",
    "composite",
    "resample_reference",
    "RegionPolicy",
    "EdgeExtendPolicy",
    "SymmetricPaddingPolicy",
    "create_region_policy_from_config",
]
