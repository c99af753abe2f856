"""
Tests for the inference layer: preprocessing, the ONNX backend and the
shared lazy backend provider.
"""

import sys
import threading
import time
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from errors import InferenceError, ModelLoadError
from inference.backend import preprocess_image
from inference.onnx_backend import OnnxBackend, OnnxConfig
import inference.provider as provider_module
from inference.provider import BackendProvider, get_default_provider
from runtime.context import create_context_from_config


class MockBackend:
    """Mock backend for testing."""

    input_size = 640

    def infer(self, image):
        return np.zeros((1, 5, 8400), dtype=np.float32)


class TestPreprocessImage:
    def test_channels_first_shape(self):
        image = np.zeros((480, 640, 3), dtype=np.uint8)
        blob = preprocess_image(image, 320)
        assert blob.shape == (1, 3, 320, 320)
        assert blob.dtype == np.float32

    def test_channels_last_shape(self):
        image = np.zeros((480, 640, 3), dtype=np.uint8)
        blob = preprocess_image(image, 320, channels_first=False)
        assert blob.shape == (1, 320, 320, 3)

    def test_bgr_to_rgb_and_scaling(self):
        image = np.zeros((100, 200, 3), dtype=np.uint8)
        image[:, :, 0] = 255  # blue in BGR
        blob = preprocess_image(image, 64)

        assert np.allclose(blob[0, 2], 1.0)  # blue is the last RGB channel
        assert np.allclose(blob[0, 0], 0.0)
        assert blob.min() >= 0.0 and blob.max() <= 1.0

    def test_grayscale_and_bgra_inputs(self):
        gray = np.full((50, 50), 255, dtype=np.uint8)
        bgra = np.zeros((50, 50, 4), dtype=np.uint8)
        assert preprocess_image(gray, 32).shape == (1, 3, 32, 32)
        assert preprocess_image(bgra, 32).shape == (1, 3, 32, 32)
        assert np.allclose(preprocess_image(gray, 32), 1.0)


class TestBackendProvider:
    def test_lazy_load(self):
        factory = MagicMock(return_value=MockBackend())
        provider = BackendProvider(factory)

        assert not provider.is_ready
        factory.assert_not_called()

        backend = provider.get()
        assert provider.is_ready
        assert provider.get() is backend
        factory.assert_called_once()

    def test_concurrent_first_access_loads_once(self):
        calls = []

        def slow_factory():
            calls.append(1)
            time.sleep(0.05)
            return MockBackend()

        provider = BackendProvider(slow_factory)
        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(provider.get())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert provider.load_count == 1
        assert len(results) == 8
        assert all(r is results[0] for r in results)

    def test_failure_is_wrapped_and_retryable(self):
        attempts = {"n": 0}

        def flaky_factory():
            attempts["n"] += 1
            if attempts["n"] == 1:
                raise RuntimeError("corrupt model")
            return MockBackend()

        provider = BackendProvider(flaky_factory)
        with pytest.raises(ModelLoadError, match="corrupt model"):
            provider.get()
        assert not provider.is_ready

        assert isinstance(provider.get(), MockBackend)
        assert provider.load_count == 1

    def test_model_load_error_passes_through(self):
        provider = BackendProvider(MagicMock(side_effect=ModelLoadError("missing")))
        with pytest.raises(ModelLoadError, match="missing"):
            provider.get()

    def test_reset(self):
        factory = MagicMock(side_effect=lambda: MockBackend())
        provider = BackendProvider(factory)
        first = provider.get()
        provider.reset()
        assert not provider.is_ready
        assert provider.get() is not first
        assert factory.call_count == 2


class TestDefaultProvider:
    """Process-wide providers, one per model config."""

    @pytest.fixture(autouse=True)
    def empty_registry(self, monkeypatch):
        monkeypatch.setattr(provider_module, "_default_providers", {})

    def _config(self, valid_config, model_path):
        valid_config["model"]["path"] = model_path
        return valid_config

    def test_same_key_shares_provider(self):
        first = get_default_provider(("a.onnx", 640), MockBackend)
        second = get_default_provider(("a.onnx", 640), MagicMock())
        assert first is second

    def test_different_keys_get_different_providers(self):
        first = get_default_provider(("a.onnx", 640), MockBackend)
        second = get_default_provider(("b.onnx", 640), MockBackend)
        assert first is not second

    def test_contexts_use_their_own_model(self, valid_config, tmp_path):
        """A second config in the same process loads its own model path."""
        ctx_a = create_context_from_config(self._config(valid_config, str(tmp_path / "model_a.onnx")))
        ctx_b = create_context_from_config(self._config(valid_config, str(tmp_path / "model_b.onnx")))

        assert ctx_a.backend_provider is not ctx_b.backend_provider
        with pytest.raises(ModelLoadError) as exc_info:
            ctx_b.backend_provider.get()
        assert "model_b" in str(exc_info.value)

    def test_same_model_config_shares_provider(self, valid_config, tmp_path):
        path = str(tmp_path / "model_a.onnx")
        ctx_1 = create_context_from_config(self._config(valid_config, path))
        ctx_2 = create_context_from_config(self._config(valid_config, path))
        assert ctx_1.backend_provider is ctx_2.backend_provider

    def test_corrected_model_path_recovers(self, valid_config, fake_onnxruntime, model_file, tmp_path):
        """After a failed load, a context with a fixed model path can load."""
        broken = create_context_from_config(self._config(valid_config, str(tmp_path / "missing.onnx")))
        with pytest.raises(ModelLoadError):
            broken.backend_provider.get()

        fixed = create_context_from_config(self._config(valid_config, model_file))
        backend = fixed.backend_provider.get()

        assert isinstance(backend, OnnxBackend)
        fake_onnxruntime.InferenceSession.assert_called_once_with(
            model_file, providers=["CPUExecutionProvider"]
        )


@pytest.fixture
def fake_onnxruntime():
    """Install a fake onnxruntime module with a single-input session."""
    ort = MagicMock()
    session = ort.InferenceSession.return_value
    session.get_inputs.return_value = [SimpleNamespace(name="images", shape=[1, 3, 640, 640])]
    session.get_providers.return_value = ["CPUExecutionProvider"]
    session.run.return_value = [np.zeros((1, 5, 8400), dtype=np.float32)]
    with patch.dict(sys.modules, {"onnxruntime": ort}):
        yield ort


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "wm.onnx"
    path.write_bytes(b"onnx")
    return str(path)


class TestOnnxBackend:
    def test_missing_model_file(self, tmp_path):
        with pytest.raises(ModelLoadError, match="not found"):
            OnnxBackend(OnnxConfig(model=str(tmp_path / "nope.onnx")))

    def test_session_created_with_providers(self, fake_onnxruntime, model_file):
        OnnxBackend(OnnxConfig(model=model_file, providers=["CPUExecutionProvider"]))
        fake_onnxruntime.InferenceSession.assert_called_once_with(
            model_file, providers=["CPUExecutionProvider"]
        )

    def test_infer_feeds_nchw_blob(self, fake_onnxruntime, model_file):
        backend = OnnxBackend(OnnxConfig(model=model_file))
        out = backend.infer(np.zeros((720, 1280, 3), dtype=np.uint8))

        assert backend.channels_first is True
        assert out.shape == (1, 5, 8400)
        session = fake_onnxruntime.InferenceSession.return_value
        args, _ = session.run.call_args
        assert args[0] is None
        assert args[1]["images"].shape == (1, 3, 640, 640)

    def test_nhwc_model_detected(self, fake_onnxruntime, model_file):
        session = fake_onnxruntime.InferenceSession.return_value
        session.get_inputs.return_value = [SimpleNamespace(name="input", shape=[1, 640, 640, 3])]

        backend = OnnxBackend(OnnxConfig(model=model_file))
        backend.infer(np.zeros((100, 100, 3), dtype=np.uint8))

        assert backend.channels_first is False
        args, _ = session.run.call_args
        assert args[1]["input"].shape == (1, 640, 640, 3)

    def test_session_failure_is_model_load_error(self, fake_onnxruntime, model_file):
        fake_onnxruntime.InferenceSession.side_effect = RuntimeError("bad protobuf")
        with pytest.raises(ModelLoadError, match="bad protobuf"):
            OnnxBackend(OnnxConfig(model=model_file))

    def test_run_failure_is_inference_error(self, fake_onnxruntime, model_file):
        backend = OnnxBackend(OnnxConfig(model=model_file))
        fake_onnxruntime.InferenceSession.return_value.run.side_effect = RuntimeError("boom")
        with pytest.raises(InferenceError, match="boom"):
            backend.infer(np.zeros((10, 10, 3), dtype=np.uint8))
