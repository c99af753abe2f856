"""
Inference layer: model backends and the shared lazy backend provider.
"""

from .backend import InferenceBackend, preprocess_image
from .onnx_backend import OnnxBackend, OnnxConfig
from .provider import BackendProvider, get_default_provider

__all__ = [
    "InferenceBackend",
    "preprocess_image",
    "OnnxBackend",
    "OnnxConfig",
    "BackendProvider",
    "get_default_provider",
]
