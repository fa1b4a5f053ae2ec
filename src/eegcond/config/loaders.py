"""Configuration file loaders for JSON and TOML formats.

Settings may sit at the top level of the file or under an ``eegcond`` table, so they
can share a file with other tools:

    [eegcond]
    reference = "average"

    [eegcond.filtering]
    l_freq = 0.5
    h_freq = 40.0

    [eegcond.artifacts]
    mode = "interpolate"
"""

import json
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .._logging import logger
from .models import Settings

SECTION = "eegcond"


def _settings_from_mapping(data: Mapping[str, Any], path: Path) -> Settings:
    if SECTION in data:
        section = data[SECTION]
        if not isinstance(section, Mapping):
            raise ValueError(f"'{SECTION}' in {path} must be a table, got {type(section).__name__}")
        data = section
    settings = Settings(**data)
    logger.info(
        f"Loaded settings from {path}: {settings.filtering.l_freq}-{settings.filtering.h_freq} Hz, "
        f"artifact mode {settings.artifacts.mode}, {settings.data_format.value} recordings"
    )
    return settings


class ConfigLoader:
    """Loads session :class:`Settings` from configuration files.

    Examples:
        settings = ConfigLoader.from_json("session.json")
        settings = ConfigLoader.from_toml("pyproject.toml")  # reads [eegcond]

        # Auto-detect format
        settings = ConfigLoader.from_file("session.toml")
    """

    @staticmethod
    def from_json(path: str | Path) -> Settings:
        """Load settings from a JSON object, optionally nested under ``"eegcond"``.

        Raises:
            FileNotFoundError: If file does not exist
            json.JSONDecodeError: If file is not valid JSON
            pydantic.ValidationError: If config doesn't match schema
        """
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, Mapping):
            raise ValueError(f"{path} must contain a JSON object, got {type(data).__name__}")
        return _settings_from_mapping(data, path)

    @staticmethod
    def from_toml(path: str | Path) -> Settings:
        """Load settings from a TOML file, optionally nested under ``[eegcond]``.

        Raises:
            FileNotFoundError: If file does not exist
            tomllib.TOMLDecodeError: If file is not valid TOML
            pydantic.ValidationError: If config doesn't match schema
        """
        path = Path(path)
        with path.open("rb") as f:
            data = tomllib.load(f)
        return _settings_from_mapping(data, path)

    @staticmethod
    def from_file(path: str | Path) -> Settings:
        """Load settings from a file, auto-detecting format by extension.

        Raises:
            ValueError: If file extension is not .json or .toml
            FileNotFoundError: If file does not exist
        """
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix == ".json":
            return ConfigLoader.from_json(path)
        if suffix == ".toml":
            return ConfigLoader.from_toml(path)
        raise ValueError(f"Unsupported config file format: {path.suffix}. Only .json and .toml are supported.")
