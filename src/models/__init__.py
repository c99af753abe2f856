"""
Typed models for the watermark cleaner.

Plain dataclasses shared by the inference, algorithm and pipeline layers.
"""

from .detection import Proposal, Rectangle, TensorLayout
from .task import ImagePair
from .result import BatchResult, ImageOutcome, ImageResult
from .config import (
    Config,
    ModelConfig,
    RemovalConfig,
    OutputConfig,
    BatchConfig,
    REGION_POLICIES,
)

__all__ = [
    # Detection
    "Proposal",
    "Rectangle",
    "TensorLayout",
    # Tasks and results
    "ImagePair",
    "ImageOutcome",
    "ImageResult",
    "BatchResult",
    # Config
    "Config",
    "ModelConfig",
    "RemovalConfig",
    "OutputConfig",
    "BatchConfig",
    "REGION_POLICIES",
]
