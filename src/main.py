"""
Command-line entry point for the watermark cleaner.

Removes a watermark from each photo by detecting its region with an ONNX
detector and pasting the same region from a clean reference photo.

Usage:
    python src/main.py --config config/config.yaml --pair wm.jpg clean.jpg
    python src/main.py --tasks tasks.yaml --confidence 0.5 --policy symmetric

Arguments:
    --config: Path to configuration file
    --pair: Watermarked and reference image paths (repeatable)
    --tasks: YAML file with a list of {wm: ..., clean: ...} mappings
    --confidence / --padding / --policy / --workers / --output-dir: overrides
"""

import os
import sys
import argparse
import json
import logging
import yaml
from typing import Dict, Any, List, Tuple, Optional

from models.config import REGION_POLICIES
from models.task import ImagePair
from ops.logging import setup_logging
from pipeline.engine import create_engine_from_config
from runtime.context import create_context_from_config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r", encoding="utf-8") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r", encoding="utf-8") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r", encoding="utf-8") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['model', 'removal', 'output', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Model
    model = config.get('model') or {}
    if not isinstance(model.get('path'), str) or not model.get('path'):
        return False, "model.path is required"
    input_size = model.get('input_size', 640)
    if not isinstance(input_size, int) or isinstance(input_size, bool) or input_size <= 0:
        return False, "model.input_size must be a positive integer"
    providers = model.get('providers')
    if providers is not None and (
        not isinstance(providers, list) or not all(isinstance(p, str) for p in providers)
    ):
        return False, "model.providers must be a list of provider names"

    # Removal tunables
    removal = config.get('removal') or {}
    conf = removal.get('confidence_threshold', 0.4)
    if not _is_number(conf) or not (0 <= conf <= 1):
        return False, "removal.confidence_threshold must be between 0 and 1"
    padding = removal.get('padding_ratio', 0.1)
    if not _is_number(padding) or padding < 0:
        return False, "removal.padding_ratio must be a non-negative number"
    policy = removal.get('region_policy', 'edge_extend')
    if policy not in REGION_POLICIES:
        return False, f"removal.region_policy must be one of: {', '.join(REGION_POLICIES)}"
    widen = removal.get('widen_factor', 3.5)
    if not _is_number(widen) or widen <= 0:
        return False, "removal.widen_factor must be a positive number"

    # Output
    output = config.get('output') or {}
    if not isinstance(output.get('output_dir'), str) or not output.get('output_dir'):
        return False, "output.output_dir is required"
    prefix = output.get('filename_prefix', 'Fixed_')
    if not isinstance(prefix, str) or not prefix:
        return False, "output.filename_prefix must be a non-empty string"
    quality = output.get('jpeg_quality', 98)
    if not isinstance(quality, int) or isinstance(quality, bool) or not (0 <= quality <= 100):
        return False, "output.jpeg_quality must be an integer between 0 and 100"

    # Optional batch settings
    batch = config.get('batch', {}) or {}
    if 'max_workers' in batch:
        workers = batch['max_workers']
        if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
            return False, "batch.max_workers must be a positive integer"

    # Validate log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def load_tasks(tasks_path: str) -> List[ImagePair]:
    """
    Load image pairs from a YAML file.

    The file holds either a list of {wm, clean} mappings or a mapping with
    a `tasks` key containing that list.
    """
    with open(tasks_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("tasks") or []
    if not isinstance(data, list):
        raise ValueError(f"{tasks_path}: expected a list of tasks")
    return [ImagePair.from_dict(item) for item in data]


def apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Apply command-line overrides on top of the merged config."""
    removal = config.setdefault('removal', {})
    if args.confidence is not None:
        removal['confidence_threshold'] = args.confidence
    if args.padding is not None:
        removal['padding_ratio'] = args.padding
    if args.policy is not None:
        removal['region_policy'] = args.policy
    if args.model is not None:
        config.setdefault('model', {})['path'] = args.model
    if args.output_dir is not None:
        config.setdefault('output', {})['output_dir'] = args.output_dir
    if args.workers is not None:
        config.setdefault('batch', {})['max_workers'] = args.workers
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Remove watermarks by pasting the detected region from a clean reference image'
    )
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--pair', nargs=2, action='append', metavar=('WATERMARKED', 'REFERENCE'),
                        default=[], help='Watermarked image and its clean reference (repeatable)')
    parser.add_argument('--tasks', type=str,
                        help='YAML file with a list of {wm, clean} mappings')
    parser.add_argument('--model', type=str, help='Override model.path')
    parser.add_argument('--confidence', type=float, help='Override removal.confidence_threshold')
    parser.add_argument('--padding', type=float, help='Override removal.padding_ratio')
    parser.add_argument('--policy', choices=REGION_POLICIES, help='Override removal.region_policy')
    parser.add_argument('--workers', type=int, help='Override batch.max_workers')
    parser.add_argument('--output-dir', type=str, help='Override output.output_dir')
    parser.add_argument('--json', action='store_true',
                        help='Print the batch result as JSON instead of the text log')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main application function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = apply_overrides(load_config(args.config), args)

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        return 1

    setup_logging(config['log_path'], config['log_level'])

    pairs = [ImagePair(wm, clean) for wm, clean in args.pair]
    if args.tasks:
        try:
            pairs.extend(load_tasks(args.tasks))
        except (OSError, ValueError, yaml.YAMLError) as e:
            logging.error(f"Failed to load tasks from {args.tasks}: {e}")
            return 1
    if not pairs:
        parser.error("no image pairs given (use --pair or --tasks)")

    logging.info(f"Starting watermark cleaner: {len(pairs)} image pair(s)")

    ctx = create_context_from_config(config)
    engine = create_engine_from_config(ctx)
    result = engine.run(pairs)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(result.logs, end="")
        print(f"Repaired {result.success_count}/{len(pairs)} image(s)")

    return 1 if result.fatal_error else 0


if __name__ == '__main__':
    sys.exit(main())
