"""
Per-image and per-batch result models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .detection import Rectangle
from .task import ImagePair


class ImageOutcome(str, Enum):
    """Outcome of processing one image pair."""
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    DECODE_FAILURE = "decode_failure"
    INFERENCE_FAILURE = "inference_failure"
    GEOMETRY_FAILURE = "geometry_failure"
    PERSISTENCE_FAILURE = "persistence_failure"

    @property
    def is_failure(self) -> bool:
        return self not in (ImageOutcome.SUCCESS, ImageOutcome.NOT_FOUND)


@dataclass
class ImageResult:
    """
    Result of processing a single image pair.

    Attributes:
        pair: The input pair.
        outcome: What happened.
        message: Human-readable detail (error text for failures).
        rectangle: Replaced region after clamping, for successes.
        confidence: Confidence of the selected proposal, if any was selected.
        output_path: Where the repaired image was written, for successes.
    """
    pair: ImagePair
    outcome: ImageOutcome
    message: str = ""
    rectangle: Optional[Rectangle] = None
    confidence: Optional[float] = None
    output_path: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome == ImageOutcome.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "wm": self.pair.watermarked_path,
            "clean": self.pair.reference_path,
            "outcome": self.outcome.value,
            "message": self.message,
        }
        if self.rectangle is not None:
            d["rectangle"] = list(self.rectangle.as_tuple())
        if self.confidence is not None:
            d["confidence"] = self.confidence
        if self.output_path is not None:
            d["output_path"] = self.output_path
        return d


@dataclass
class BatchResult:
    """
    Aggregated result of a batch run.

    Attributes:
        results: Per-image results in input order.
        log_lines: Human-readable log of the run.
        fatal_error: Set when the batch could not run at all (model load failure).
    """
    results: List[ImageResult] = field(default_factory=list)
    log_lines: List[str] = field(default_factory=list)
    fatal_error: Optional[str] = None

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == ImageOutcome.SUCCESS)

    @property
    def not_found_count(self) -> int:
        return sum(1 for r in self.results if r.outcome == ImageOutcome.NOT_FOUND)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if r.outcome.is_failure)

    @property
    def logs(self) -> str:
        return "".join(f"{line}\n" for line in self.log_lines)

    def log(self, line: str) -> None:
        self.log_lines.append(line)

    def to_dict(self) -> Dict[str, Any]:
        """Response shape of the batch call: success count plus log text."""
        d: Dict[str, Any] = {
            "count": self.success_count,
            "logs": self.logs,
            "results": [r.to_dict() for r in self.results],
        }
        if self.fatal_error:
            d["fatal_error"] = self.fatal_error
        return d
