"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


def build_standard_tensor(confidences, boxes=None, num_params=5):
    """
    Build a [1, params, N] tensor.

    boxes[i] is (cx, cy, w, h) for proposal i; a dummy box is used when omitted.
    """
    n = len(confidences)
    tensor = np.zeros((1, num_params, n), dtype=np.float32)
    for i, conf in enumerate(confidences):
        box = boxes[i] if boxes is not None else (100.0 + i, 200.0 + i, 50.0, 20.0)
        tensor[0, 0:4, i] = box
        tensor[0, 4, i] = conf
    return tensor


def to_transposed(tensor):
    """Swap the trailing dimensions: [1, 5, N] -> [1, N, 5]."""
    return np.ascontiguousarray(np.transpose(tensor, (0, 2, 1)))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
model:
  path: "models/test.onnx"
  input_size: 640

removal:
  confidence_threshold: 0.4
  padding_ratio: 0.1
  region_policy: "edge_extend"

output:
  output_dir: "output/test"
  filename_prefix: "Fixed_"
  jpeg_quality: 98

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "model": {
            "path": "models/test.onnx",
            "input_size": 640,
            "providers": ["CPUExecutionProvider"],
        },
        "removal": {
            "confidence_threshold": 0.4,
            "padding_ratio": 0.1,
            "region_policy": "edge_extend",
            "widen_factor": 3.5,
        },
        "output": {
            "output_dir": "output/test",
            "filename_prefix": "Fixed_",
            "jpeg_quality": 98,
        },
        "batch": {
            "max_workers": 1,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
