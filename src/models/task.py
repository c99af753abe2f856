"""
ImagePair model for a single watermark removal task.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ImagePair:
    """
    A watermarked photo and the clean reference it is repaired from.

    Attributes:
        watermarked_path: Path to the image carrying the watermark.
        reference_path: Path to the clean image with matching content.
    """
    watermarked_path: str
    reference_path: str

    @property
    def name(self) -> str:
        """File name of the watermarked image, used in logs and output naming."""
        return os.path.basename(self.watermarked_path)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ImagePair":
        """
        Adapter: Create from a task mapping.

        Accepts the short task keys ("wm", "clean") as well as the field names.
        """
        wm = d.get("wm", d.get("watermarked_path"))
        clean = d.get("clean", d.get("reference_path"))
        if not wm or not clean:
            raise ValueError(f"Task needs both 'wm' and 'clean' paths: {d!r}")
        return cls(watermarked_path=str(wm), reference_path=str(clean))

    def to_dict(self) -> Dict[str, str]:
        return {"wm": self.watermarked_path, "clean": self.reference_path}
