"""
Process-wide, lazily initialized inference backend.

Each model is loaded on first use and then shared read-only by every batch
and every worker thread. Concurrent first callers are serialized on a lock
so the model is loaded exactly once.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Hashable, Optional

from errors import ModelLoadError
from .backend import InferenceBackend


BackendFactory = Callable[[], InferenceBackend]


class BackendProvider:
    """
    Guarded cell holding either nothing (uninitialized) or a ready backend.

    Example:
        provider = BackendProvider(lambda: OnnxBackend(OnnxConfig(model="wm.onnx")))
        backend = provider.get()  # loads on first call, cached afterwards
    """

    def __init__(self, factory: BackendFactory):
        self._factory = factory
        self._backend: Optional[InferenceBackend] = None
        self._lock = threading.Lock()
        self.load_count = 0

    @property
    def is_ready(self) -> bool:
        return self._backend is not None

    def get(self) -> InferenceBackend:
        """
        Return the backend, loading it if needed.

        Raises:
            ModelLoadError: If loading fails. The cell stays uninitialized so
                a later call may retry.
        """
        backend = self._backend
        if backend is not None:
            return backend

        with self._lock:
            if self._backend is None:
                logging.info("Loading inference backend...")
                try:
                    loaded = self._factory()
                except ModelLoadError:
                    raise
                except Exception as e:
                    raise ModelLoadError(f"Failed to initialize inference backend: {e}") from e
                self.load_count += 1
                self._backend = loaded
                logging.info("Inference backend ready")
            return self._backend

    def reset(self) -> None:
        """Drop the cached backend (next get() reloads)."""
        with self._lock:
            self._backend = None


_default_providers: Dict[Hashable, BackendProvider] = {}
_default_lock = threading.Lock()


def get_default_provider(key: Hashable, factory: BackendFactory) -> BackendProvider:
    """
    Return the process-wide provider for `key`, creating it on first call.

    One provider exists per key, so contexts built from different model
    configs never share a backend. Later calls with the same key ignore
    `factory` and return the existing provider.

    Args:
        key: Identity of the model config, e.g. (path, input_size, providers).
        factory: Builds the backend the first time the provider is used.
    """
    with _default_lock:
        provider = _default_providers.get(key)
        if provider is None:
            logging.debug(f"Creating inference backend provider for {key}")
            provider = BackendProvider(factory)
            _default_providers[key] = provider
        return provider
