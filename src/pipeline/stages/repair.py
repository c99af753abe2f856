"""
Repair stage: paste the reference region over the watermark and save.
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from algorithms.compositor import composite
from models.detection import Rectangle
from storage.image_store import ImageStore


class RepairStage:
    """Composites the clean region onto the target and persists the result."""

    def __init__(self, store: ImageStore):
        self._store = store

    def process(
        self,
        target: np.ndarray,
        reference: np.ndarray,
        rect: Rectangle,
        source_path: str,
    ) -> Tuple[str, Rectangle]:
        """
        Returns:
            (output path, clamped rectangle).

        Raises:
            GeometryError: If the region cannot be composited.
            PersistenceError: If the result cannot be written.
        """
        repaired, safe_rect = composite(target, reference, rect)
        return self._store.save(repaired, source_path), safe_rect
