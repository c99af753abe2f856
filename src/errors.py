"""
Exception types for the watermark cleaning pipeline.

Stages raise these; the batch engine catches them at the single-image
boundary and turns them into an ImageResult.
"""

from __future__ import annotations


class WatermarkCleanerError(Exception):
    """Base class for all pipeline errors."""


class ImageDecodeError(WatermarkCleanerError):
    """Image bytes could not be read or parsed into a pixel buffer."""


class InferenceError(WatermarkCleanerError):
    """The inference backend failed or returned unusable output."""


class TensorDecodeError(InferenceError):
    """The detection tensor has a degenerate or unsupported shape."""


class GeometryError(WatermarkCleanerError):
    """The replacement region collapsed to zero area."""


class PersistenceError(WatermarkCleanerError):
    """The composited image could not be written out."""


class ModelLoadError(WatermarkCleanerError):
    """
    The inference backend could not be initialized.

    Fatal for a whole batch, unlike the per-image errors above.
    """
