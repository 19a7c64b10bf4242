"""
Configuration Module for the Invoice Extraction Pipeline.

Settings live in one YAML file: acquisition thresholds, OCR budgets,
worker caps, the per-plan limits under ``tiers`` and export defaults.
Nothing in the pipeline hard-codes those numbers; every component reads
them through ``get_config("section.key", default)``.

The file is chosen in this order:
    1. the path handed to ConfigurationManager (the CLI's --config)
    2. the INVOICE_PIPELINE_CONFIG environment variable
    3. config/settings.yaml next to this module
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

from invoice_pipeline.utils.exceptions import ConfigurationError

CONFIG_ENV_VAR = "INVOICE_PIPELINE_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "settings.yaml"

# A settings file without these cannot drive a batch
REQUIRED_SECTIONS = ("acquisition", "ocr", "pipeline", "tiers")

# Relative paths in these keys are anchored at the project root
PATH_KEYS = ("paths.output_dir", "paths.log_dir", "logging.file.path")


class ConfigurationManager:
    """
    Process-wide holder of the loaded settings.

    The first instantiation loads and validates the file; later calls get
    the same instance back, whatever path they pass. Tests call ``reset()``
    to start over.

    Attributes:
        config_path (Path): File the settings were read from.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("acquisition.sufficiency_threshold")
        50
        >>> config.get("tiers.free.max_files_per_batch")
        5
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        if self._initialized:
            return

        config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
        self.config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

        self._config = self._load(self.config_path)
        self._resolve_paths()
        self._initialized = True

    @staticmethod
    def _load(path: Path) -> Dict[str, Any]:
        """
        Read and validate a settings file.

        Raises:
            ConfigurationError: If the file is missing, is not valid YAML,
                is not a mapping or lacks a required section.
        """
        if not path.is_file():
            raise ConfigurationError(
                f"Configuration file not found: {path}", {"path": str(path)}
            )

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Configuration file is not valid YAML: {path}", {"path": str(path), "reason": str(e)}
            )

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {path}", {"path": str(path)}
            )

        missing = [name for name in REQUIRED_SECTIONS if not isinstance(data.get(name), dict)]
        if missing:
            raise ConfigurationError(
                f"Configuration file {path} is missing section(s): {', '.join(missing)}",
                {"path": str(path), "missing": missing}
            )

        return data

    def _resolve_paths(self) -> None:
        project_root = Path(__file__).parent.parent

        for key in PATH_KEYS:
            *parents, leaf = key.split('.')
            section = self._config
            for name in parents:
                section = section.get(name)
                if not isinstance(section, dict):
                    break
            else:
                value = section.get(leaf)
                if value and not Path(value).is_absolute():
                    section[leaf] = str(project_root / value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "ocr.tesseract.lang").
            default: Returned when any part of the key is absent.

        Example:
            >>> config.get("acquisition.ocr.max_pages")
            3
            >>> config.get("nonexistent.key", "default_value")
            "default_value"
        """
        value = self._config

        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    @classmethod
    def reset(cls) -> None:
        """Forget the loaded settings so the next instantiation reloads."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ``ConfigurationManager().get(key, default)``."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'CONFIG_ENV_VAR', 'REQUIRED_SECTIONS']
