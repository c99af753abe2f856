"""
Pipeline stages for the watermark cleaner.

Each stage handles one part of the per-image chain:
- detect: inference, decoding and region mapping
- repair: compositing and persistence
"""

from .detect import Detection, DetectStage, DetectStageConfig
from .repair import RepairStage

__all__ = ["Detection", "DetectStage", "DetectStageConfig", "RepairStage"]
