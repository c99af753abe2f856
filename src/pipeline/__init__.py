"""
Pipeline module for the watermark cleaner.

The pipeline orchestrates the per-image flow:
- Image decoding
- Detection (inference, tensor decoding, region mapping)
- Repair (compositing from the reference) and persistence
"""

from .engine import BatchEngine, EngineConfig, create_engine_from_config
from .stages.detect import Detection, DetectStage, DetectStageConfig
from .stages.repair import RepairStage

__all__ = [
    "BatchEngine",
    "EngineConfig",
    "create_engine_from_config",
    "Detection",
    "DetectStage",
    "DetectStageConfig",
    "RepairStage",
]
