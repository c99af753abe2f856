from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from algorithms.region import RegionPolicy, create_region_policy_from_config
from inference.onnx_backend import OnnxBackend, OnnxConfig
from inference.provider import BackendProvider, get_default_provider
from models.config import Config, ModelConfig
from storage.image_store import ImageStore, ImageStoreConfig


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids ad-hoc globals."""

    config: Config
    backend_provider: BackendProvider
    region_policy: RegionPolicy
    store: ImageStore

    @property
    def confidence_threshold(self) -> float:
        return float(self.config.removal.confidence_threshold)

    @property
    def padding_ratio(self) -> float:
        return float(self.config.removal.padding_ratio)


def model_provider_key(model_cfg: ModelConfig) -> Tuple[str, int, Tuple[str, ...]]:
    """Identity of a model config for the process-wide provider registry."""
    return (
        os.path.abspath(model_cfg.path),
        int(model_cfg.input_size),
        tuple(model_cfg.providers),
    )


def create_context_from_config(
    config: Dict[str, Any],
    backend_provider: Optional[BackendProvider] = None,
) -> RuntimeContext:
    """
    Build a RuntimeContext from the merged config dict.

    Args:
        config: Full application config dict.
        backend_provider: Provider to use; defaults to the process-wide one
            for the configured ONNX model (one provider per model config).
    """
    cfg = Config.from_dict(config)

    if backend_provider is None:
        model_cfg = cfg.model
        backend_provider = get_default_provider(
            model_provider_key(model_cfg),
            lambda: OnnxBackend(
                OnnxConfig(
                    model=model_cfg.path,
                    input_size=int(model_cfg.input_size),
                    providers=list(model_cfg.providers),
                )
            )
        )

    policy = create_region_policy_from_config(cfg.removal.to_dict(), int(cfg.model.input_size))
    store = ImageStore(
        ImageStoreConfig(
            output_dir=cfg.output.output_dir,
            filename_prefix=cfg.output.filename_prefix,
            jpeg_quality=int(cfg.output.jpeg_quality),
        )
    )
    return RuntimeContext(
        config=cfg,
        backend_provider=backend_provider,
        region_policy=policy,
        store=store,
    )
