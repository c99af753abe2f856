"""
Image reading and writing.

Repaired images are written next to each other in a single output directory,
named deterministically from the watermarked file name.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import List, Set

import cv2
import numpy as np

from errors import ImageDecodeError, PersistenceError

JPEG_EXTENSIONS = (".jpg", ".jpeg")


@dataclass
class ImageStoreConfig:
    """
    Configuration for the image store.

    Attributes:
        output_dir: Directory receiving repaired images.
        filename_prefix: Marker prepended to the original file name.
        jpeg_quality: JPEG quality (0-100) for .jpg/.jpeg outputs.
    """
    output_dir: str = "output/cleaned"
    filename_prefix: str = "Fixed_"
    jpeg_quality: int = 98


def read_image(path: str) -> np.ndarray:
    """
    Decode an image file into a BGR pixel buffer.

    Raises:
        ImageDecodeError: If the file is missing or cannot be decoded.
    """
    if not os.path.isfile(path):
        raise ImageDecodeError(f"File not found: {path}")
    try:
        # np.fromfile + imdecode also handles non-ASCII paths
        data = np.fromfile(path, dtype=np.uint8)
    except OSError as e:
        raise ImageDecodeError(f"Cannot read {path}: {e}") from e

    image = cv2.imdecode(data, cv2.IMREAD_COLOR) if data.size else None
    if image is None:
        raise ImageDecodeError(f"Cannot decode image: {path}")
    return image


class ImageStore:
    """Reads input images and persists repaired ones."""

    def __init__(self, config: ImageStoreConfig):
        self.config = config
        # output paths written since the last begin_batch()
        self._written: Set[str] = set()
        self._written_lock = threading.Lock()

    def begin_batch(self) -> None:
        """Forget the paths written by earlier batches."""
        with self._written_lock:
            self._written.clear()

    def _claim(self, path: str) -> bool:
        """Record `path` as written; False if this batch already wrote it."""
        key = os.path.abspath(path)
        with self._written_lock:
            if key in self._written:
                return False
            self._written.add(key)
            return True

    def output_name(self, source_path: str) -> str:
        """Derive the output file name from the watermarked file name."""
        return f"{self.config.filename_prefix}{os.path.basename(source_path)}"

    def output_path(self, source_path: str) -> str:
        return os.path.join(self.config.output_dir, self.output_name(source_path))

    def read(self, path: str) -> np.ndarray:
        return read_image(path)

    def _encode_params(self, ext: str) -> List[int]:
        if ext in JPEG_EXTENSIONS:
            return [cv2.IMWRITE_JPEG_QUALITY, int(self.config.jpeg_quality)]
        return []

    def save(self, image: np.ndarray, source_path: str) -> str:
        """
        Write a repaired image and return its path.

        The codec follows the source file extension; files without an
        extension are encoded as JPEG. Names depend only on the file name,
        so two sources with the same name in one batch map to the same
        output: the later save overwrites the earlier one and a warning is
        logged.

        Raises:
            PersistenceError: If encoding or writing fails.
        """
        path = self.output_path(source_path)
        ext = os.path.splitext(path)[1].lower() or ".jpg"
        if not self._claim(path):
            logging.warning(
                f"Output {path} was already written in this batch; "
                f"overwriting it with the result for {source_path}"
            )

        try:
            os.makedirs(self.config.output_dir, exist_ok=True)
            ok, buf = cv2.imencode(ext, image, self._encode_params(ext))
            if not ok:
                raise PersistenceError(f"Cannot encode {path} as {ext}")
            buf.tofile(path)
        except PersistenceError:
            raise
        except (OSError, cv2.error) as e:
            raise PersistenceError(f"Cannot write {path}: {e}") from e

        logging.info(f"Saved repaired image: {path}")
        return path
