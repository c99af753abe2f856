"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


REGION_POLICIES = ("edge_extend", "symmetric")


@dataclass
class ModelConfig:
    """Detection model configuration."""
    path: str = "models/yolov8_wm.onnx"
    input_size: int = 640
    providers: List[str] = field(default_factory=lambda: ["CPUExecutionProvider"])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            path=d.get("path", "models/yolov8_wm.onnx"),
            input_size=d.get("input_size", 640),
            providers=d.get("providers") or ["CPUExecutionProvider"],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "input_size": self.input_size,
            "providers": list(self.providers),
        }


@dataclass
class RemovalConfig:
    """
    Detection and region tunables.

    Attributes:
        confidence_threshold: Minimum max-confidence for a detection to count.
        padding_ratio: Fraction of the box size added on each padded side.
        region_policy: "edge_extend" (default) or "symmetric".
        widen_factor: Width multiplier for left/center detections (edge_extend only).
    """
    confidence_threshold: float = 0.4
    padding_ratio: float = 0.1
    region_policy: str = "edge_extend"
    widen_factor: float = 3.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RemovalConfig":
        return cls(
            confidence_threshold=d.get("confidence_threshold", 0.4),
            padding_ratio=d.get("padding_ratio", 0.1),
            region_policy=d.get("region_policy", "edge_extend"),
            widen_factor=d.get("widen_factor", 3.5),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence_threshold": self.confidence_threshold,
            "padding_ratio": self.padding_ratio,
            "region_policy": self.region_policy,
            "widen_factor": self.widen_factor,
        }


@dataclass
class OutputConfig:
    """Output (persistence) configuration."""
    output_dir: str = "output/cleaned"
    filename_prefix: str = "Fixed_"
    jpeg_quality: int = 98

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OutputConfig":
        return cls(
            output_dir=d.get("output_dir", "output/cleaned"),
            filename_prefix=d.get("filename_prefix", "Fixed_"),
            jpeg_quality=d.get("jpeg_quality", 98),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_dir": self.output_dir,
            "filename_prefix": self.filename_prefix,
            "jpeg_quality": self.jpeg_quality,
        }


@dataclass
class BatchConfig:
    """Batch execution configuration."""
    max_workers: int = 1

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BatchConfig":
        return cls(max_workers=d.get("max_workers", 1))

    def to_dict(self) -> Dict[str, Any]:
        return {"max_workers": self.max_workers}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    model: ModelConfig = field(default_factory=ModelConfig)
    removal: RemovalConfig = field(default_factory=RemovalConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    log_path: str = "logs/watermark_cleaner.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            model=ModelConfig.from_dict(d.get("model") or {}),
            removal=RemovalConfig.from_dict(d.get("removal") or {}),
            output=OutputConfig.from_dict(d.get("output") or {}),
            batch=BatchConfig.from_dict(d.get("batch") or {}),
            log_path=d.get("log_path", "logs/watermark_cleaner.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "model": self.model.to_dict(),
            "removal": self.removal.to_dict(),
            "output": self.output.to_dict(),
            "batch": self.batch.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
