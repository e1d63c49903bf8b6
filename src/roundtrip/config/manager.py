"""Configuration management - loading, validation, and persistence."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import OPTION_KEYS, RoundTripConfig


class ConfigManager:
    """Loads, updates and saves the YAML configuration file."""

    DEFAULT_CONFIG_LOCATIONS = [
        Path("config/roundtrip.yaml"),
        Path.home() / ".config" / "roundtrip" / "config.yaml",
        Path.home() / ".roundtrip" / "config.yaml",
    ]

    USER_CONFIG_PATH = Path.home() / ".config" / "roundtrip" / "config.yaml"

    def __init__(self, config_path: Path | None = None):
        """
        Args:
            config_path: Config file to use; the default locations are searched when None.
        """
        self.config_path = Path(config_path) if config_path is not None else None
        self._config: RoundTripConfig | None = None

    def load(self, create_if_missing: bool = False) -> RoundTripConfig:
        """
        Read and validate the YAML file.

        With ``create_if_missing`` a missing file yields the built-in defaults
        (nothing is written).

        Raises:
            FileNotFoundError: No file found and ``create_if_missing`` is False.
            ValueError: The file is not YAML or does not validate.
        """
        config_file = self._find_config_file()

        if config_file is None:
            if create_if_missing:
                self._config = RoundTripConfig()
                return self._config
            raise FileNotFoundError(
                f"No configuration file found. Searched: {self._search_locations()}"
            )

        try:
            with open(config_file, encoding="utf-8") as f:
                config_dict = yaml.safe_load(f) or {}

            self._config = RoundTripConfig(**config_dict)
            self.config_path = config_file
            return self._config

        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {config_file}: {e}") from e
        except ValidationError as e:
            raise ValueError(f"Invalid configuration in {config_file}: {e}") from e

    def save(self, config: RoundTripConfig | None = None, path: Path | None = None) -> Path:
        """
        Write ``config`` (or the loaded one) as YAML and return the file written.

        The target is ``path``, else the file the config came from, else the
        per-user location.
        """
        config_to_save = config or self._config
        if config_to_save is None:
            raise ValueError("No configuration to save")

        save_path = Path(path or self.config_path or self.USER_CONFIG_PATH)
        save_path.parent.mkdir(parents=True, exist_ok=True)

        # mode="json" turns Path values into strings
        config_dict = config_to_save.model_dump(mode="json")

        with open(save_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                config_dict,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )

        self.config_path = save_path
        self._config = config_to_save
        return save_path

    def set_option(self, key: str, raw_value: str) -> RoundTripConfig:
        """
        Update one option by its flat name and return the new configuration.

        Values are parsed as YAML scalars so ``true``/``16`` arrive typed;
        anything that does not parse as a scalar is kept as the raw string.

        Raises:
            KeyError: Unknown option name.
            ValueError: Value rejected by validation.
        """
        if key not in OPTION_KEYS:
            raise KeyError(f"Unknown option '{key}'. Known options: {', '.join(sorted(OPTION_KEYS))}")

        section_name, field_name = OPTION_KEYS[key]
        config = self.config
        section = getattr(config, section_name)
        if isinstance(getattr(section, field_name), str):
            value = raw_value
        else:
            value = _parse_scalar(raw_value)
        data = section.model_dump()
        data[field_name] = value
        try:
            new_section = type(section).model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {key}: {e}") from e

        setattr(config, section_name, new_section)
        return config

    def _search_locations(self) -> list[Path]:
        if self.config_path is not None:
            return [self.config_path]
        return list(self.DEFAULT_CONFIG_LOCATIONS)

    def _find_config_file(self) -> Path | None:
        """Find the config file: the explicit path if given, else the first default that exists."""
        if self.config_path is not None:
            return self.config_path if self.config_path.exists() else None

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if location.exists():
                return location

        return None

    @property
    def config(self) -> RoundTripConfig:
        """Get current configuration."""
        if self._config is None:
            self._config = self.load(create_if_missing=True)
        return self._config


def _parse_scalar(raw_value: str) -> Any:
    if not raw_value.strip():
        return raw_value
    try:
        value = yaml.safe_load(raw_value)
    except yaml.YAMLError:
        return raw_value
    if isinstance(value, (dict, list)):
        return raw_value
    return value


_config_manager: ConfigManager | None = None


def get_config_manager(config_path: Path | None = None) -> ConfigManager:
    """
    Get the process-wide config manager.

    Passing a path different from the current manager's replaces it.
    """
    global _config_manager
    if _config_manager is None or (
        config_path is not None and Path(config_path) != _config_manager.config_path
    ):
        _config_manager = ConfigManager(config_path)
    return _config_manager


def get_config(reload: bool = False) -> RoundTripConfig:
    """Get current configuration, optionally reloading it from disk."""
    manager = get_config_manager()
    if reload:
        return manager.load()
    return manager.config
