"""
Configuration loading for the enhancement pipeline.

Reads the `enhancement:` section of config/enhancement_config.yaml.
A missing file is not an error: built-in defaults are used and a warning
is logged. Keys missing from the file fall back to their defaults.
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger

from image_enhancement.exceptions import ConfigError
from image_enhancement.skew import supported_estimators

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "enhancement_config.yaml"

_NUMERIC_KEYS = (
    "auto_deskew_min_angle",
    "auto_denoise_min_noise",
    "auto_sharpen_max_sharpness",
)


def default_config() -> Dict[str, Any]:
    """Return default configuration"""
    return {
        'skew_estimator': 'run_length',
        'auto_deskew_min_angle': 2.0,        # |skew| above → deskew
        'auto_denoise_min_noise': 40,        # noise above → denoise
        'auto_sharpen_max_sharpness': 50,    # sharpness below → sharpen
    }


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file

    Args:
        config_path: Path to YAML file (default: config/enhancement_config.yaml)

    Returns:
        Merged `enhancement` section

    Raises:
        ConfigError: unparseable YAML or invalid values
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not os.path.exists(config_path):
        logger.warning(f"[Config] Config file not found: {config_path}, using defaults")
        return default_config()

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse {config_path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")

    section = raw.get('enhancement') or {}
    if not isinstance(section, dict):
        raise ConfigError(f"{config_path}: 'enhancement' must be a mapping")

    return merge_config(section)


def merge_config(overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Defaults updated with the known keys of overrides, then validated."""
    config = default_config()
    unknown = set(overrides) - set(config)
    if unknown:
        logger.warning(f"[Config] Ignoring unknown keys: {sorted(unknown)}")

    for key in config:
        if key in overrides:
            config[key] = overrides[key]

    return validate_config(config)


def validate_config(config: Dict[str, Any]) -> Dict[str, Any]:
    if config['skew_estimator'] not in supported_estimators():
        raise ConfigError(
            f"Unknown skew_estimator '{config['skew_estimator']}'. "
            f"Supported: {supported_estimators()}"
        )
    for key in _NUMERIC_KEYS:
        try:
            config[key] = float(config[key])
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{key} must be a number, got {config[key]!r}") from e
    return config
