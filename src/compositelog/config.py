"""
Configuration: environment settings and sink configuration files.

Settings are read from ``COMPOSITELOG_*`` environment variables (and an
optional ``.env`` file). A sink configuration file is JSON or YAML holding
either a list of sink records or a mapping with a ``sinks`` list:

    sinks:
      - {location: stdout, level: info, format: text}
      - {location: ~/logs/app.log.gz, level: debug, format: json}
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError
from .types import FatalPolicy, SinkConfig


class LoggingSettings(BaseSettings):
    """Composite logger configuration."""

    model_config = SettingsConfigDict(
        env_prefix="COMPOSITELOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    config_file: Optional[str] = Field(default=None, description="JSON or YAML file listing the sinks")
    name: str = Field(default="root", description="Logger name rendered into each record")
    fatal_policy: FatalPolicy = Field(
        default=FatalPolicy.ALL_SINKS,
        description="Sinks receiving fatal records (all_sinks, primary_sink)",
    )
    console_timestamp_format: Optional[str] = Field(
        default=None,
        description="strftime pattern for console timestamps (UTC); unset keeps ISO-8601",
    )
    console_level_width: int = Field(default=8, description="Console level column width")
    console_logger_width: int = Field(default=16, description="Console logger column width")
    console_separator: str = Field(default=" | ", description="Console column separator")


def coerce_sink_config(value: SinkConfig | Mapping[str, Any], *, source: Optional[str] = None) -> SinkConfig:
    """Validate a parsed record into a SinkConfig."""
    if isinstance(value, SinkConfig):
        return value
    try:
        return SinkConfig.model_validate(value)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid sink configuration {value!r}: {exc}", source=source) from exc


def _parse_document(path: Path) -> Any:
    suffix = path.suffix.lower()
    with open(path, "r", encoding="utf-8") as f:
        if suffix == ".json":
            return json.load(f)
        if suffix in (".yaml", ".yml"):
            return yaml.safe_load(f)
    raise ConfigurationError(f"Unsupported sink configuration format: {path.name}", source=str(path))


def load_sink_configs(path: str | Path) -> List[SinkConfig]:
    """Load sink configurations from a JSON or YAML file.

    Raises:
        ConfigurationError: The file is missing, unreadable, malformed, or a
            record fails validation.
    """
    path = Path(path).expanduser()
    source = str(path)
    try:
        document = _parse_document(path)
    except OSError as exc:
        raise ConfigurationError(f"Could not read sink configuration: {exc}", source=source) from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not parse sink configuration: {exc}", source=source) from exc

    if isinstance(document, Mapping):
        document = document.get("sinks")
    if document is None:
        return []
    if not isinstance(document, list):
        raise ConfigurationError("Sink configuration must be a list of sinks", source=source)
    return [coerce_sink_config(item, source=source) for item in document]
