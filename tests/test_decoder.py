"""
Tests for detection tensor decoding.
"""

import numpy as np
import pytest

from algorithms.decoder import decode, infer_layout, max_confidence, proposal_rows
from errors import InferenceError, TensorDecodeError
from models.detection import TensorLayout

from conftest import build_standard_tensor, to_transposed


class TestInferLayout:
    def test_standard_layout(self):
        assert infer_layout((1, 5, 8400)) == TensorLayout.STANDARD

    def test_transposed_layout(self):
        assert infer_layout((1, 8400, 5)) == TensorLayout.TRANSPOSED

    def test_square_is_standard(self):
        """Equal trailing dimensions are read as the standard layout."""
        assert infer_layout((1, 5, 5)) == TensorLayout.STANDARD

    def test_multiclass_params_accepted(self):
        """Exports with 4 + num_classes values per proposal are accepted."""
        assert infer_layout((1, 6, 8400)) == TensorLayout.STANDARD
        assert infer_layout((1, 8400, 6)) == TensorLayout.TRANSPOSED

    @pytest.mark.parametrize("shape", [
        (5, 8400),
        (1, 5, 8400, 1),
        (2, 5, 8400),
        (1, 5, 0),
        (1, 0, 5),
        (1, 4, 8400),
        (1, 8400, 3),
    ])
    def test_degenerate_shapes_rejected(self, shape):
        with pytest.raises(TensorDecodeError):
            infer_layout(shape)


class TestProposalRows:
    def test_standard_rows_are_columns(self):
        tensor = build_standard_tensor([0.1, 0.9, 0.2, 0.3, 0.4, 0.5])
        rows = proposal_rows(tensor, TensorLayout.STANDARD)
        assert rows.shape == (6, 5)
        assert rows[1, 4] == pytest.approx(0.9)

    def test_transposed_rows_are_rows(self):
        tensor = to_transposed(build_standard_tensor([0.1, 0.9, 0.2, 0.3, 0.4, 0.5]))
        rows = proposal_rows(tensor, TensorLayout.TRANSPOSED)
        assert rows.shape == (6, 5)
        assert rows[1, 4] == pytest.approx(0.9)


class TestDecode:
    def _tensor_with_winner(self):
        confs = [0.05] * 100
        boxes = [(10.0, 10.0, 5.0, 5.0)] * 100
        confs[42] = 0.87
        boxes = list(boxes)
        boxes[42] = (400.0, 550.0, 120.0, 30.0)
        return build_standard_tensor(confs, boxes)

    def test_selects_highest_confidence_standard(self):
        proposal = decode(self._tensor_with_winner(), 0.5)

        assert proposal is not None
        assert proposal.index == 42
        assert proposal.center_x == pytest.approx(400.0)
        assert proposal.center_y == pytest.approx(550.0)
        assert proposal.width == pytest.approx(120.0)
        assert proposal.height == pytest.approx(30.0)
        assert proposal.confidence == pytest.approx(0.87)

    def test_layout_symmetric(self):
        """The transposed tensor yields the same proposal as the standard one."""
        standard = self._tensor_with_winner()
        transposed = to_transposed(standard)
        assert transposed.shape == (1, 100, 5)

        a = decode(standard, 0.5)
        b = decode(transposed, 0.5)

        assert a is not None and b is not None
        assert a.as_tuple() == pytest.approx(b.as_tuple())
        assert a.index == b.index

    def test_all_below_threshold_returns_none(self):
        tensor = build_standard_tensor([0.1] * 50)
        assert decode(tensor, 0.4) is None
        assert decode(to_transposed(tensor), 0.4) is None

    def test_max_equal_to_threshold_is_accepted(self):
        tensor = build_standard_tensor([0.1, 0.5, 0.2, 0.1, 0.1, 0.1])
        threshold = float(np.float32(0.5))
        proposal = decode(tensor, threshold)
        assert proposal is not None
        assert proposal.index == 1

    def test_first_maximum_wins_ties(self):
        tensor = build_standard_tensor([0.1, 0.7, 0.3, 0.7, 0.2, 0.7])
        proposal = decode(tensor, 0.5)
        assert proposal.index == 1

    def test_nan_confidence_never_wins(self):
        tensor = build_standard_tensor([0.1, 0.6, 0.2, 0.1, 0.1, 0.1])
        tensor[0, 4, 0] = np.nan
        proposal = decode(tensor, 0.5)
        assert proposal is not None
        assert proposal.index == 1

    def test_all_nan_returns_none(self):
        tensor = build_standard_tensor([0.5] * 10)
        tensor[0, 4, :] = np.nan
        assert decode(tensor, 0.0) is None

    def test_multiclass_reads_index_four(self):
        tensor = build_standard_tensor([0.1, 0.2, 0.9, 0.1, 0.1, 0.1, 0.1], num_params=6)
        tensor[0, 5, :] = 0.99  # second class score is ignored
        proposal = decode(tensor, 0.5)
        assert proposal.index == 2

    def test_degenerate_tensor_raises_decode_error(self):
        with pytest.raises(TensorDecodeError):
            decode(np.zeros((1, 5, 0), dtype=np.float32), 0.4)

    def test_decode_error_is_inference_error(self):
        with pytest.raises(InferenceError):
            decode(np.zeros((5, 8400), dtype=np.float32), 0.4)

    def test_accepts_nested_lists(self):
        tensor = build_standard_tensor([0.1, 0.2, 0.3, 0.9, 0.1, 0.1]).tolist()
        proposal = decode(tensor, 0.5)
        assert proposal.index == 3


class TestMaxConfidence:
    def test_reports_max(self):
        tensor = build_standard_tensor([0.1, 0.35, 0.2, 0.1, 0.1, 0.1])
        assert max_confidence(tensor) == pytest.approx(0.35)
        assert max_confidence(to_transposed(tensor)) == pytest.approx(0.35)
