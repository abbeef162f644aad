"""
Configuration management for the warpd UI.

Configuration is loaded from multiple sources with layered precedence:
1. Built-in defaults (Pydantic model defaults)
2. YAML config file (~/.config/warpd/ui.yml or --config path)
3. Environment variables (WARPD_UI_* prefix, __ for nesting)
4. Command-line arguments (highest precedence)
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from warpd_ui.ipc.protocol import DEFAULT_SOCKET_PATH

DEFAULT_CONFIG_PATH = Path("~/.config/warpd/ui.yml")
DEFAULT_ENV_PREFIX = "WARPD_UI_"

# =============================================================================
# IPC Configuration
# =============================================================================


class IPCConfig(BaseModel):
    """Daemon IPC configuration.

    Attributes:
        socket_path: Unix domain socket path.
        request_timeout_seconds: Timeout for connect/write/read, None to block.
    """

    socket_path: str = Field(
        default=DEFAULT_SOCKET_PATH,
        description="Unix domain socket path of the warpd daemon",
    )
    request_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="IPC timeout in seconds (unset blocks indefinitely)",
    )

    @field_validator("socket_path")
    @classmethod
    def validate_socket_path(cls, v: str) -> str:
        """Reject an empty socket path."""
        if not v.strip():
            raise ValueError("socket_path must not be empty")
        return v


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level.
        log_to_stdout: Log to stdout (True) or stderr (False).
        json_format: Emit JSON records instead of plain text.
        debug_mode: Force DEBUG level.
    """

    level: str = Field(
        default="warning",
        description="Log level: debug, info, warn, error, critical",
    )
    log_to_stdout: bool = Field(
        default=False,
        description="Whether to log to stdout instead of stderr",
    )
    json_format: bool = Field(
        default=True,
        description="Whether to emit JSON-formatted log records",
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable extra diagnostic logging",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"debug", "info", "warn", "warning", "error", "critical"}
        v_lower = v.lower()
        if v_lower not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(sorted(valid_levels))}"
            )
        # Normalize 'warn' to 'warning'
        if v_lower == "warn":
            return "warning"
        return v_lower


# =============================================================================
# UI Configuration
# =============================================================================


class UIConfig(BaseModel):
    """UI presentation settings.

    Attributes:
        title: Window title.
        max_elements: Number of elements shown from elements.list.
    """

    title: str = Field(
        default="warpd ui",
        description="Window title",
    )
    max_elements: int = Field(
        default=50,
        ge=1,
        le=50,
        description="Maximum number of elements exposed to the UI",
    )


# =============================================================================
# Main Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """
    Main application configuration model.

    Attributes:
        ipc: IPC configuration.
        logging: Logging configuration.
        ui: UI configuration.
    """

    ipc: IPCConfig = Field(
        default_factory=IPCConfig,
        description="IPC configuration",
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    ui: UIConfig = Field(
        default_factory=UIConfig,
        description="UI configuration",
    )


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: The base dictionary.
        override: The dictionary with values to override.

    Returns:
        A new dictionary with merged values.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the YAML is invalid.
        ValueError: If the document is not a mapping.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"Configuration file must contain a mapping, got {type(data).__name__}: "
            f"{config_path}"
        )
    return data


def _parse_env_value(value: str) -> Any:
    """
    Parse an environment variable value to appropriate Python type.

    Args:
        value: String value from environment variable.

    Returns:
        Parsed value (bool, int, float, or string).
    """
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


def _load_env_config(prefix: str = DEFAULT_ENV_PREFIX) -> dict[str, Any]:
    """
    Load configuration from environment variables.

    Environment variables are parsed with the following rules:
    - Prefix: WARPD_UI_ (configurable)
    - Nested keys: Double underscore (__) separator
    - Example: WARPD_UI_IPC__SOCKET_PATH=/tmp/warpd.sock
    """
    result: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        config_key = key[len(prefix) :].lower()
        parts = config_key.split("__")

        current = result
        for part in parts[:-1]:
            current = current.setdefault(part, {})

        current[parts[-1]] = _parse_env_value(value)

    return result


def build_arg_parser(add_help: bool = True) -> argparse.ArgumentParser:
    """
    Build the parser for the global configuration options.

    The CLI uses this as a parent parser so both agree on the flags.
    """
    parser = argparse.ArgumentParser(
        description="warpd UI",
        add_help=add_help,
    )

    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to configuration file",
    )

    parser.add_argument(
        "--socket",
        "-s",
        type=str,
        help="Path to the daemon socket",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        help="IPC timeout in seconds",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Override log level",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode",
    )

    return parser


def _parse_cli_args(args: list[str] | None = None) -> dict[str, Any]:
    """
    Parse command-line arguments into configuration overrides.

    Unknown arguments (such as CLI subcommands) are ignored.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Dictionary with parsed arguments.
    """
    parsed, _ = build_arg_parser(add_help=False).parse_known_args(args)

    result: dict[str, Any] = {}

    if parsed.config:
        result["_config_path"] = parsed.config

    if parsed.socket:
        result.setdefault("ipc", {})["socket_path"] = parsed.socket

    if parsed.timeout is not None:
        result.setdefault("ipc", {})["request_timeout_seconds"] = parsed.timeout

    if parsed.log_level:
        result.setdefault("logging", {})["level"] = parsed.log_level

    if parsed.debug:
        result.setdefault("logging", {})["debug_mode"] = True
        result["logging"]["level"] = "debug"

    return result


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
    cli_args: list[str] | None = None,
) -> AppConfig:
    """
    Load configuration from all sources with layered precedence.

    Later sources override earlier ones: defaults, YAML file, environment
    variables, command-line arguments.

    Args:
        config_path: Path to YAML configuration file. If None, uses the
            --config argument or the default path when it exists.
        env_prefix: Prefix for environment variables.
        cli_args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Fully configured AppConfig instance.

    Raises:
        FileNotFoundError: If specified config file doesn't exist.
        yaml.YAMLError: If the config file is not valid YAML.
        ValueError: If the config file is not a mapping.
        ValidationError: If configuration is invalid.
    """
    config_dict: dict[str, Any] = {}

    cli_config = _parse_cli_args(cli_args)
    cli_path = cli_config.pop("_config_path", None)

    if config_path is None:
        if cli_path is not None:
            config_path = Path(cli_path)
        else:
            default_path = DEFAULT_CONFIG_PATH.expanduser()
            if default_path.exists():
                config_path = default_path
    elif isinstance(config_path, str):
        config_path = Path(config_path)

    if config_path is not None:
        config_dict = _deep_merge(config_dict, _load_yaml_config(config_path))

    config_dict = _deep_merge(config_dict, _load_env_config(env_prefix))
    config_dict = _deep_merge(config_dict, cli_config)

    return AppConfig(**config_dict)
