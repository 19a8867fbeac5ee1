"""Configuration loading for BlogPilot.

Settings come from an optional ``blogpilot.yaml`` and are then overridden
by environment variables, so secrets never need to live in the file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from blogpilot.autopilot.models import AutopilotConfig
from blogpilot.images.providers import DEFAULT_SERVICES
from blogpilot.shopify.models import ShopifyCredentials
from blogpilot.textgen.client import DEFAULT_MODEL

CONFIG_FILENAME = "blogpilot.yaml"

ENV_OVERRIDES = {
    "GEMINI_API_KEY": ("gemini", "api_key"),
    "GEMINI_MODEL": ("gemini", "model"),
    "SHOPIFY_STORE_NAME": ("shopify", "store_name"),
    "SHOPIFY_ACCESS_TOKEN": ("shopify", "access_token"),
    "BLOGPILOT_DB_PATH": ("database", "path"),
    "BLOGPILOT_LOG_DIR": ("logging", "dir"),
    "BLOGPILOT_LOG_LEVEL": ("logging", "level"),
}


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass
class GeminiSettings:
    """Text-generation settings."""

    api_key: str = ""
    model: str = DEFAULT_MODEL
    timeout: float = 120.0


@dataclass
class ShopifySettings:
    """Store credentials and publishing defaults."""

    store_name: str = ""
    access_token: str = ""
    api_version: str = "2024-07"
    author: str = "BlogPilot AI Writer"

    @property
    def credentials(self) -> ShopifyCredentials:
        return ShopifyCredentials(store_name=self.store_name, access_token=self.access_token)


@dataclass
class ImageSettings:
    """Image service order and request timeout."""

    services: list[str] = field(default_factory=lambda: list(DEFAULT_SERVICES))
    aspect_ratio: str = "16:9"
    timeout: float = 10.0


@dataclass
class WriterSettings:
    """Brand context used in every writing prompt."""

    brand_name: str = "our store"
    audience: str = "online shoppers"


@dataclass
class DatabaseSettings:
    """Run history database."""

    path: str = "blogpilot.db"


@dataclass
class LoggingSettings:
    """Log file location, level and rotation."""

    dir: str = "logs"
    level: str = "INFO"
    file: str = "blogpilot.log"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5


@dataclass
class Settings:
    """All BlogPilot settings."""

    gemini: GeminiSettings = field(default_factory=GeminiSettings)
    shopify: ShopifySettings = field(default_factory=ShopifySettings)
    images: ImageSettings = field(default_factory=ImageSettings)
    writer: WriterSettings = field(default_factory=WriterSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
    autopilot: AutopilotConfig = field(default_factory=AutopilotConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create settings from a dictionary.

        Args:
            data: Configuration dictionary, usually parsed YAML.

        Returns:
            Parsed settings.

        Raises:
            ConfigError: If a section is not a mapping or has unknown keys.
        """
        sections: dict[str, Any] = {}
        for name, section_cls in (
            ("gemini", GeminiSettings),
            ("shopify", ShopifySettings),
            ("images", ImageSettings),
            ("writer", WriterSettings),
            ("database", DatabaseSettings),
            ("logging", LoggingSettings),
        ):
            values = _section(data, name)
            try:
                sections[name] = section_cls(**values)
            except TypeError as e:
                raise ConfigError(f"Invalid '{name}' section: {e}") from e

        try:
            sections["autopilot"] = AutopilotConfig.from_dict(_section(data, "autopilot"))
        except TypeError as e:
            raise ConfigError(f"Invalid 'autopilot' section: {e}") from e

        return cls(**sections)

    def apply_env(self, environ: dict[str, str] | None = None) -> Settings:
        """Override fields from environment variables (in place)."""
        env = os.environ if environ is None else environ
        for var, (section, attr) in ENV_OVERRIDES.items():
            value = env.get(var)
            if value:
                setattr(getattr(self, section), attr, value)
        return self


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    values = data.get(name) or {}
    if not isinstance(values, dict):
        raise ConfigError(f"Section '{name}' must be a mapping, got {type(values).__name__}")
    return values


def find_config(start_path: Path | str | None = None) -> Path | None:
    """Find blogpilot.yaml by walking up the directory tree.

    Args:
        start_path: Starting directory. Defaults to current directory.

    Returns:
        Path to the config file, or None if there is none.
    """
    current = Path.cwd() if start_path is None else Path(start_path)
    current = current.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def load_settings(
    config_path: Path | str | None = None,
    environ: dict[str, str] | None = None,
) -> Settings:
    """Load settings from YAML (if any) and the environment.

    Args:
        config_path: Explicit config file. When omitted, ``find_config`` is
            used and a missing file simply means defaults.
        environ: Environment mapping. Defaults to ``os.environ``.

    Raises:
        ConfigError: If an explicit file doesn't exist or any file is invalid.
    """
    if config_path is not None:
        path: Path | None = Path(config_path)
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")
    else:
        path = find_config()

    data: Any = {}
    if path is not None:
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    return Settings.from_dict(data).apply_env(environ)
