"""
Configuration management for the Cheshire Cat client.

Provides the session settings consumed by the socket session and the REST
adapter, plus optional YAML/JSON loading with the hierarchy
overrides > file > defaults (used by the command line only; the library
itself takes every value from the embedding application).
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal
from urllib.parse import quote

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ccat_client.models import SocketError

DEFAULT_PORT = 1865


class WebSocketSettings(BaseModel):
    """WebSocket session configuration."""

    model_config = ConfigDict(validate_assignment=True)

    delay: float = Field(
        default=3.0,
        description="Seconds to wait before reconnecting after an unexpected close",
    )
    path: str = Field(
        default="ws",
        description="Base path of the chat endpoint on the server",
    )
    retries: int = Field(
        default=3,
        description="Reconnect budget; a negative value retries forever",
    )
    on_failed: Callable[[SocketError], None] | None = Field(
        default=None,
        exclude=True,
        description="Called once with a FailedRetry error when the budget is spent",
    )

    @field_validator("delay")
    @classmethod
    def validate_delay(cls, v: float) -> float:
        """Validate delay is not negative."""
        if v < 0:
            raise ValueError("delay must not be negative")
        return v

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Strip surrounding slashes and whitespace from the socket path."""
        return v.strip().strip("/")


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Log level",
    )
    format: Literal["text", "json"] = Field(
        default="text",
        description="Log format (text or json)",
    )


class CatSettings(BaseModel):
    """
    Settings for one client session.

    Changing ``user`` or ``auth_key`` through the client invalidates the whole
    session; see ``CatClient.user_id`` and ``CatClient.auth_key``.
    """

    model_config = ConfigDict(validate_assignment=True)

    base_url: str = Field(
        default="localhost",
        description="Host name of the Cat, without scheme",
    )
    secure: bool = Field(
        default=False,
        description="Use wss:// and https:// instead of ws:// and http://",
    )
    instant: bool = Field(
        default=True,
        description="Initialize the socket and the API client on construction",
    )
    timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for the handshake and REST calls",
    )
    port: int | None = Field(
        default=DEFAULT_PORT,
        description="Server port; None leaves it out of the URLs",
    )
    user: str = Field(
        default="user",
        description="User id used in the socket path and as default sender",
    )
    auth_key: str | None = Field(
        default=None,
        description="Value sent in the access_token header",
    )
    ws: WebSocketSettings = Field(default_factory=WebSocketSettings)

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int | None) -> int | None:
        """Validate port number is in valid range."""
        if v is not None and not (1 <= v <= 65535):
            raise ValueError("Port must be between 1 and 65535")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Validate value is positive."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("user")
    @classmethod
    def validate_user(cls, v: str) -> str:
        """Reject empty user ids."""
        if not v.strip():
            raise ValueError("user must not be empty")
        return v

    @property
    def _authority(self) -> str:
        port = f":{self.port}" if self.port else ""
        return re.sub(r"\s", "", f"{'s' if self.secure else ''}://{self.base_url}{port}")

    @property
    def ws_url(self) -> str:
        """Chat endpoint, e.g. ``ws://localhost:1865/ws/user``."""
        return f"ws{self._authority}/{self.ws.path}/{quote(self.user, safe='')}"

    @property
    def http_url(self) -> str:
        """Base URL of the REST API, e.g. ``http://localhost:1865``."""
        return f"http{self._authority}"


def load_yaml(config_file: str | Path) -> dict[str, Any]:
    """
    Load YAML or JSON configuration file.

    Args:
        config_file: Path to YAML or JSON configuration file

    Returns:
        Dictionary with parsed content, empty when the file does not exist

    Raises:
        ValueError: If YAML/JSON is invalid or file format is wrong
    """
    config_path = Path(config_file).expanduser()

    if not config_path.exists():
        return {}

    file_ext = config_path.suffix.lower()
    if file_ext not in [".yaml", ".yml", ".json"]:
        raise ValueError(
            f"Config file must have .yaml, .yml, or .json extension, got: {file_ext}\n"
            f"File: {config_path}"
        )

    try:
        with open(config_path) as f:
            content = f.read()

        if file_ext == ".json":
            data = json.loads(content) if content.strip() else {}
        else:
            data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}") from e
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in config file: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping, got {type(data).__name__}")
    return data


def apply_overrides(
    config_dict: dict[str, Any],
    overrides: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Apply overrides to a config dictionary.

    Keys may be dotted (``"ws.retries"``) to reach nested sections. ``None``
    values are skipped so unset command line options keep the file value.
    """
    if not overrides:
        return config_dict

    for key, value in overrides.items():
        if value is None:
            continue
        parts = key.split(".")
        current = config_dict
        for part in parts[:-1]:
            current = current.setdefault(part, {})
        current[parts[-1]] = value

    return config_dict


def load_settings(
    config_file: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> CatSettings:
    """
    Load client settings with hierarchy: overrides > file > defaults.

    Raises:
        ValueError: If the file cannot be parsed or the values are invalid
    """
    config_dict = load_yaml(config_file) if config_file else {}
    config_dict.pop("logging", None)
    config_dict = apply_overrides(config_dict, overrides)

    try:
        return CatSettings(**config_dict)
    except Exception as e:
        raise ValueError(
            f"Configuration validation failed: {e}\n"
            f"Please check your configuration file at {config_file}"
        ) from e


def load_logging_settings(config_file: str | Path | None = None) -> LoggingSettings:
    """Read the optional ``logging`` section of a config file."""
    section = load_yaml(config_file).get("logging") if config_file else None
    return LoggingSettings(**(section or {}))
