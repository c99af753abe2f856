"""
Detection models: tensor layout, proposals and pixel rectangles.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np


class TensorLayout(str, Enum):
    """
    Ordering of the trailing dimensions of a detection tensor.

    STANDARD: (params, N) - column i across parallel rows holds proposal i.
    TRANSPOSED: (N, params) - row i holds proposal i contiguously.
    """
    STANDARD = "standard"
    TRANSPOSED = "transposed"


@dataclass(frozen=True)
class Proposal:
    """
    A single candidate region emitted by the detector.

    Attributes:
        center_x: Box center x (model input pixels, or a fraction of the input size).
        center_y: Box center y.
        width: Box width.
        height: Box height.
        confidence: Detection confidence score.
        index: Position of the proposal in the tensor, if known.
    """
    center_x: float
    center_y: float
    width: float
    height: float
    confidence: float
    index: Optional[int] = None

    @property
    def is_normalized(self) -> bool:
        """Whether the box parameters are fractions of the model input size."""
        return self.width < 1.0

    def as_tuple(self) -> Tuple[float, float, float, float, float]:
        """Return as (center_x, center_y, width, height, confidence) tuple."""
        return (self.center_x, self.center_y, self.width, self.height, self.confidence)

    @classmethod
    def from_numpy_row(cls, row: np.ndarray, index: Optional[int] = None) -> "Proposal":
        """
        Adapter: Convert a tensor row [cx, cy, w, h, conf, ...] to a Proposal.
        """
        return cls(
            center_x=float(row[0]),
            center_y=float(row[1]),
            width=float(row[2]),
            height=float(row[3]),
            confidence=float(row[4]),
            index=index,
        )


@dataclass(frozen=True)
class Rectangle:
    """
    An axis-aligned rectangle in target image pixel coordinates.

    May extend past the image bounds until it has been clamped.
    """
    x: int
    y: int
    width: int
    height: int

    @property
    def x2(self) -> int:
        return self.x + self.width

    @property
    def y2(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        if self.width <= 0 or self.height <= 0:
            return 0
        return self.width * self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_corners(cls, x1: int, y1: int, x2: int, y2: int) -> "Rectangle":
        """Create from (x1, y1, x2, y2) corners."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)

    def __str__(self) -> str:
        return f"Rect({self.x}, {self.y} {self.width}x{self.height})"
