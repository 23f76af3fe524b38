"""Configuration for the interactive console.

Parses and validates an optional YAML file holding prompt, external program
marker and I/O settings.
"""

from __future__ import annotations

import codecs
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import BaseModel, field_validator


class ConsoleConfig(BaseModel):
    """Console configuration."""
    prompt: str = "> "
    external_marker: str = "!"
    encoding: str = "utf-8"
    completion: bool = True
    banner: Optional[str] = None

    @field_validator('external_marker')
    @classmethod
    def validate_marker(cls, v: str) -> str:
        """Ensure the marker cannot be confused with quoting or pipes."""
        if not v:
            raise ValueError("External marker must not be empty")
        if any(char.isspace() or char in '|"\'\\' for char in v):
            raise ValueError(f"External marker must not contain whitespace, quotes or pipes, got '{v}'")
        return v

    @field_validator('encoding')
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Ensure the encoding is known."""
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"Unknown encoding '{v}'") from e
        return v


class ConfigParser:
    """Parse and validate console configuration."""

    def __init__(self, config_path: Union[str, Path]):
        """Initialize parser with config file path.

        Args:
            config_path: Path to the YAML configuration file
        """
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        self.config: Optional[ConsoleConfig] = None
        self._raw_config: Optional[Dict[str, Any]] = None

    def parse(self) -> ConsoleConfig:
        """Parse and validate configuration.

        An empty file yields the defaults.

        Returns:
            Validated configuration object

        Raises:
            yaml.YAMLError: If YAML parsing fails
            pydantic.ValidationError: If validation fails
        """
        with open(self.config_path) as f:
            self._raw_config = yaml.safe_load(f) or {}

        if not isinstance(self._raw_config, dict):
            raise ValueError(f"Configuration must be a mapping: {self.config_path}")

        self.config = ConsoleConfig(**self._raw_config)
        return self.config


def load_config(config_path: Union[str, Path]) -> ConsoleConfig:
    """Load and parse a configuration file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Parsed configuration

    Example:
        >>> config = load_config("cmdpipe.yaml")
        >>> config.prompt
        '> '
    """
    parser = ConfigParser(config_path)
    return parser.parse()
