"""
Region compositing.

Copies a rectangular block of pixels from the clean reference image onto the
watermarked image. This is a hard overwrite: no blending, feathering or
alpha compositing.
"""

from __future__ import annotations

import logging
from typing import Tuple

import cv2
import numpy as np

from errors import GeometryError
from models.detection import Rectangle


def _clip(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def clamp_rectangle(rect: Rectangle, image_width: int, image_height: int) -> Rectangle:
    """
    Clamp a rectangle to the image bounds.

    The top-left corner is clamped to [0, W-1] x [0, H-1] and the bottom-right
    corner to [x1+1, W] x [y1+1, H], so any non-empty image yields a region of
    at least one pixel. Clamping an already clamped rectangle is a no-op.

    Raises:
        GeometryError: If the image has no pixels to clamp into.
    """
    if image_width <= 0 or image_height <= 0:
        raise GeometryError(
            f"Cannot clamp {rect} into an empty image ({image_width}x{image_height})"
        )

    x1 = _clip(rect.x, 0, image_width - 1)
    y1 = _clip(rect.y, 0, image_height - 1)
    x2 = _clip(rect.x2, x1 + 1, image_width)
    y2 = _clip(rect.y2, y1 + 1, image_height)

    clamped = Rectangle.from_corners(x1, y1, x2, y2)
    if clamped.area == 0:
        raise GeometryError(f"Region {rect} collapsed to zero area after clamping")
    return clamped


def _match_channels(reference: np.ndarray, target: np.ndarray) -> np.ndarray:
    """Convert the reference to the target's channel count."""
    ref_ch = 1 if reference.ndim == 2 else reference.shape[2]
    tgt_ch = 1 if target.ndim == 2 else target.shape[2]
    if ref_ch == tgt_ch:
        return reference

    conversions = {
        (1, 3): cv2.COLOR_GRAY2BGR,
        (1, 4): cv2.COLOR_GRAY2BGRA,
        (3, 1): cv2.COLOR_BGR2GRAY,
        (3, 4): cv2.COLOR_BGR2BGRA,
        (4, 1): cv2.COLOR_BGRA2GRAY,
        (4, 3): cv2.COLOR_BGRA2BGR,
    }
    code = conversions.get((ref_ch, tgt_ch))
    if code is None:
        raise GeometryError(f"Cannot convert reference with {ref_ch} channels to {tgt_ch}")
    converted = cv2.cvtColor(reference, code)
    if target.ndim == 2 and converted.ndim == 3:
        converted = converted[:, :, 0]
    return converted


def resample_reference(reference: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Resize the reference to the target's exact pixel dimensions.

    Source and reference are often re-encoded independently and differ by a
    few pixels. Bilinear interpolation is used.
    """
    reference = _match_channels(reference, target)
    target_h, target_w = target.shape[:2]
    if reference.shape[:2] == (target_h, target_w):
        return reference

    logging.debug(
        f"Resampling reference {reference.shape[1]}x{reference.shape[0]} "
        f"-> {target_w}x{target_h}"
    )
    return cv2.resize(reference, (target_w, target_h), interpolation=cv2.INTER_LINEAR)


def composite(
    target: np.ndarray,
    reference: np.ndarray,
    rect: Rectangle,
) -> Tuple[np.ndarray, Rectangle]:
    """
    Replace a region of the target with the same region of the reference.

    Args:
        target: Watermarked image (H, W[, C]).
        reference: Clean image; resampled to the target size first.
        rect: Unclamped rectangle in target pixel coordinates.

    Returns:
        (repaired image, clamped rectangle). The input arrays are not modified.

    Raises:
        GeometryError: If the clamped region is empty or the images cannot be matched.
    """
    target_h, target_w = target.shape[:2]
    safe = clamp_rectangle(rect, target_w, target_h)
    resampled = resample_reference(reference, target)

    out = target.copy()
    rows = slice(safe.y, safe.y2)
    cols = slice(safe.x, safe.x2)
    out[rows, cols] = resampled[rows, cols]
    return out, safe
