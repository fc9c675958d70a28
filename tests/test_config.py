"""
Tests for YAML configuration loading
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from image_enhancement.config import (
    DEFAULT_CONFIG_PATH,
    default_config,
    load_config,
    validate_config,
)
from image_enhancement.exceptions import ConfigError
from image_enhancement.pipeline import EnhancementPipeline


def _write(tmp_path, text):
    path = tmp_path / "enhancement_config.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_shipped_config_matches_defaults():
    assert DEFAULT_CONFIG_PATH.exists()
    assert load_config() == validate_config(default_config())


def test_missing_file_uses_defaults(tmp_path):
    config = load_config(tmp_path / "nope.yaml")
    assert config == default_config()


def test_partial_section_is_merged(tmp_path):
    path = _write(tmp_path, "enhancement:\n  auto_deskew_min_angle: 4\n")
    config = load_config(path)
    assert config["auto_deskew_min_angle"] == 4.0
    assert config["auto_sharpen_max_sharpness"] == 50.0
    assert config["skew_estimator"] == "run_length"


def test_empty_file(tmp_path):
    assert load_config(_write(tmp_path, "")) == validate_config(default_config())


def test_unknown_keys_ignored(tmp_path):
    path = _write(tmp_path, "enhancement:\n  turbo: true\n")
    assert "turbo" not in load_config(path)


def test_sharpen_amount_not_configurable(tmp_path):
    path = _write(tmp_path, "enhancement:\n  auto_sharpen_amount: 0.9\n")
    assert "auto_sharpen_amount" not in load_config(path)


def test_estimator_choice(tmp_path):
    path = _write(tmp_path, "enhancement:\n  skew_estimator: hough\n")
    assert load_config(path)["skew_estimator"] == "hough"


@pytest.mark.parametrize("text", [
    "enhancement:\n  skew_estimator: magic\n",
    "enhancement:\n  auto_denoise_min_noise: lots\n",
    "enhancement: [1, 2]\n",
    "- just\n- a list\n",
    "enhancement: {unclosed\n",
])
def test_invalid_config_raises(tmp_path, text):
    with pytest.raises(ConfigError):
        load_config(_write(tmp_path, text))


def test_pipeline_reads_config_file(tmp_path):
    path = _write(tmp_path, "enhancement:\n  skew_estimator: projection_profile\n")
    pipeline = EnhancementPipeline(config_path=path)
    assert pipeline.skew_estimator.name == "projection_profile"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
