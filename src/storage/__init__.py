"""
Storage layer: image decoding and persistence of repaired images.
"""

from .image_store import ImageStore, ImageStoreConfig, read_image

__all__ = ["ImageStore", "ImageStoreConfig", "read_image"]
