"""Manager configuration with YAML support."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import Field

from records_core.schemas import StoreSettings


DEFAULT_CONFIG_FILE = "testrecords.yaml"
FILE_ENV_VAR = "TESTRECORDS_FILE"


class ManagerConfig(StoreSettings):
    """Store settings plus the knobs used by the command-line layer."""

    data_file: str = "tests.csv"
    data_dir: str = "."

    # Attempts allowed per prompted value before input is cancelled
    max_input_attempts: int = Field(default=3, ge=1)
    search_min_length: int = Field(default=3, ge=1)

    log_level: str = "WARNING"

    def store_settings(self) -> StoreSettings:
        return StoreSettings.from_dict(
            {name: getattr(self, name) for name in StoreSettings.model_fields}
        )

    def resolve_data_file(self, override: str | None = None) -> Path:
        """Pick the backing file: explicit override, then environment, then config.

        Only the environment and config values are relative to ``data_dir``.
        """
        if override:
            return Path(override)
        path = Path(os.environ.get(FILE_ENV_VAR) or self.data_file)
        if path.is_absolute():
            return path
        return Path(self.data_dir) / path


def load_config(yaml_path: str | Path) -> ManagerConfig:
    """Load manager configuration from YAML file.

    Args:
        yaml_path: Path to YAML configuration file

    Returns:
        ManagerConfig instance

    Raises:
        FileNotFoundError: If YAML file doesn't exist
        ValueError: If YAML is invalid or has bad values
    """
    yaml_path = Path(yaml_path)

    if not yaml_path.exists():
        raise FileNotFoundError(f"Config file not found: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {yaml_path}: {e}") from e

    if not data:
        raise ValueError(f"Empty or invalid YAML file: {yaml_path}")
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {yaml_path}")

    try:
        return ManagerConfig.from_dict(data)
    except Exception as e:
        raise ValueError(f"Invalid configuration in {yaml_path}: {e}") from e


def save_config(config: ManagerConfig, yaml_path: str | Path) -> None:
    """Save manager configuration to YAML file.

    Args:
        config: ManagerConfig to save
        yaml_path: Path where to save YAML file
    """
    yaml_path = Path(yaml_path)
    yaml_path.parent.mkdir(parents=True, exist_ok=True)

    data = config.to_dict()

    with open(yaml_path, "w", encoding="utf-8") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False, indent=2)


def resolve_config(config_path: str | Path | None = None) -> ManagerConfig:
    """Load ``config_path`` if given, else ``testrecords.yaml`` if present, else defaults."""
    if config_path is not None:
        return load_config(config_path)
    default_path = Path(DEFAULT_CONFIG_FILE)
    if default_path.exists():
        return load_config(default_path)
    return ManagerConfig()
