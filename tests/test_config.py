"""
Tests for settings loading and validation.
"""

from pathlib import Path

import pytest

from config import CONFIG_ENV_VAR, ConfigurationManager, get_config
from invoice_pipeline.utils.exceptions import ConfigurationError

MINIMAL_SETTINGS = """
paths:
  output_dir: exports
acquisition:
  sufficiency_threshold: 75
ocr:
  backend: tesseract
pipeline:
  max_workers: 1
tiers:
  free:
    max_files_per_batch: 2
"""


class TestConfigurationManager:
    """Tests for ConfigurationManager."""

    def test_bundled_settings(self):
        assert get_config("acquisition.sufficiency_threshold") == 50
        assert get_config("tiers.free.max_files_per_batch") == 5
        assert get_config("tiers.gold.max_files_per_batch") is None
        assert get_config("acquisition.sufficiency_threshold.deeper", "fallback") == "fallback"

    def test_singleton(self):
        assert ConfigurationManager() is ConfigurationManager()

    def test_relative_paths_anchored_at_project_root(self):
        output_dir = Path(get_config("paths.output_dir"))

        assert output_dir.is_absolute()
        assert output_dir.name == "outputs"

    def test_environment_override(self, tmp_path, monkeypatch):
        settings = tmp_path / "custom.yaml"
        settings.write_text(MINIMAL_SETTINGS, encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(settings))

        assert get_config("acquisition.sufficiency_threshold") == 75
        assert get_config("tiers.free.max_files_per_batch") == 2
        assert Path(get_config("paths.output_dir")).name == "exports"

    def test_explicit_path_beats_environment(self, tmp_path, monkeypatch):
        settings = tmp_path / "custom.yaml"
        settings.write_text(MINIMAL_SETTINGS, encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "missing.yaml"))

        config = ConfigurationManager(str(settings))
        assert config.config_path == settings

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigurationManager(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path):
        settings = tmp_path / "broken.yaml"
        settings.write_text("tiers: [free\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="not valid YAML"):
            ConfigurationManager(str(settings))

    def test_not_a_mapping(self, tmp_path):
        settings = tmp_path / "list.yaml"
        settings.write_text("- just\n- a list\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            ConfigurationManager(str(settings))

    def test_missing_sections_are_named(self, tmp_path):
        settings = tmp_path / "partial.yaml"
        settings.write_text("acquisition:\n  sufficiency_threshold: 50\n", encoding="utf-8")

        with pytest.raises(ConfigurationError) as exc_info:
            ConfigurationManager(str(settings))
        assert exc_info.value.details["missing"] == ["ocr", "pipeline", "tiers"]

    def test_failed_load_can_be_retried(self, tmp_path):
        with pytest.raises(ConfigurationError):
            ConfigurationManager(str(tmp_path / "missing.yaml"))

        ConfigurationManager.reset()
        assert get_config("acquisition.sufficiency_threshold") == 50
