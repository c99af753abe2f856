"""
Decoding of raw detection tensors.

The detector emits a rank-3 tensor [1, D1, D2] in one of two layouts:
- STANDARD (5, N): row k holds parameter k for every proposal
- TRANSPOSED (N, 5): row i holds all parameters of proposal i

Parameters per proposal are (cx, cy, w, h, confidence). Only the single
best proposal is ever used, so there is no sorting and no NMS.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

import numpy as np

from errors import TensorDecodeError
from models.detection import Proposal, TensorLayout

# cx, cy, w, h, confidence
NUM_PARAMS = 5
CONFIDENCE_INDEX = 4


def infer_layout(shape: Sequence[int]) -> TensorLayout:
    """
    Infer the tensor layout from its declared shape.

    The larger trailing dimension is the proposal count. Ties are read
    as STANDARD.

    Raises:
        TensorDecodeError: If the shape is not [1, D1, D2] with a
            parameter dimension of at least 5 and at least one proposal.
    """
    if len(shape) != 3:
        raise TensorDecodeError(f"Expected a rank-3 tensor, got shape {tuple(shape)}")
    if shape[0] != 1:
        raise TensorDecodeError(f"Expected batch dimension 1, got shape {tuple(shape)}")

    dim1, dim2 = int(shape[1]), int(shape[2])
    if dim1 > dim2:
        layout, num_params, num_proposals = TensorLayout.TRANSPOSED, dim2, dim1
    else:
        layout, num_params, num_proposals = TensorLayout.STANDARD, dim1, dim2

    if num_proposals == 0:
        raise TensorDecodeError(f"Tensor holds no proposals: shape {tuple(shape)}")
    if num_params < NUM_PARAMS:
        raise TensorDecodeError(
            f"Tensor has {num_params} values per proposal, need at least {NUM_PARAMS}: "
            f"shape {tuple(shape)}"
        )
    return layout


def proposal_rows(tensor: np.ndarray, layout: TensorLayout) -> np.ndarray:
    """Return a (N, params) view with one row per proposal."""
    plane = tensor[0]
    if layout == TensorLayout.STANDARD:
        return plane.T
    return plane


def decode(tensor: np.ndarray, confidence_threshold: float) -> Optional[Proposal]:
    """
    Select the highest-confidence proposal from a detection tensor.

    Args:
        tensor: Raw model output of shape [1, 5, N] or [1, N, 5].
        confidence_threshold: Minimum confidence for a detection.

    Returns:
        The winning Proposal, or None if the best confidence is below the
        threshold. The first maximum wins ties.

    Raises:
        TensorDecodeError: If the tensor shape is degenerate.
    """
    arr = np.asarray(tensor)
    layout = infer_layout(arr.shape)
    rows = proposal_rows(arr, layout)

    confidences = rows[:, CONFIDENCE_INDEX].astype(np.float64)
    # NaN never wins the scan
    confidences = np.where(np.isnan(confidences), -np.inf, confidences)
    best_idx = int(np.argmax(confidences))
    max_conf = float(confidences[best_idx])

    logging.debug(
        f"Decoded tensor shape={arr.shape} layout={layout.value} "
        f"proposals={rows.shape[0]} best_idx={best_idx} max_conf={max_conf:.4f}"
    )

    if max_conf < confidence_threshold:
        return None
    return Proposal.from_numpy_row(rows[best_idx], index=best_idx)


def max_confidence(tensor: np.ndarray) -> float:
    """Return the highest confidence in the tensor (for diagnostics)."""
    arr = np.asarray(tensor)
    rows = proposal_rows(arr, infer_layout(arr.shape))
    confidences = rows[:, CONFIDENCE_INDEX].astype(np.float64)
    if np.all(np.isnan(confidences)):
        return float("nan")
    return float(np.nanmax(confidences))
