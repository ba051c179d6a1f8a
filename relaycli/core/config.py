"""Configuration loader with layered priority.

Priority order (highest to lowest):
1. Environment variables (RELAY_DEVICE, RELAY_VERBOSE, RELAY_SOURCE_URL, ...)
2. Project config (.relay.yaml in current directory)
3. Global config (~/.relay.yaml)
4. Default values
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from relaycli.core.errors import ConfigError

# Config file paths
GLOBAL_CONFIG = Path.home() / ".relay.yaml"
PROJECT_CONFIG = Path.cwd() / ".relay.yaml"


def _safe_float(value: Any, default: float) -> float:
    """Convert value to float, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _safe_int(value: Any, default: int) -> int:
    """Convert value to int, returning default if None or invalid."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_bool(value: Any, default: bool = False) -> bool:
    """Parse boolean value from various formats.

    Handles:
    - None -> default
    - bool -> as-is
    - str -> "true", "1", "yes", "on" are True
    - other -> bool(value)
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on")
    return bool(value)


def _parse_duration(value: Any, default: float) -> float:
    """Parse duration value from string (e.g., '5s', '500ms') or number.

    Args:
        value: Duration as string ('5s', '500ms', '1.5s') or number (seconds)
        default: Default value if parsing fails

    Returns:
        Duration in seconds as float
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        value = value.strip().lower()
        if value.endswith("ms"):
            try:
                return float(value[:-2]) / 1000
            except ValueError:
                return default
        if value.endswith("s"):
            try:
                return float(value[:-1])
            except ValueError:
                return default
        try:
            return float(value)
        except ValueError:
            return default
    return default


@dataclass
class SenderConfig:
    """Identifiers and timing for the single-flight message sender."""

    input_id: str = "com.tencent.mm:id/bkk"
    input_class: str = "android.widget.EditText"
    send_button_id: str = "com.tencent.mm:id/bql"
    send_button_class: str = "android.widget.Button"

    timeout: float = 10.0  # Overall limit for one send call
    max_attempts: int = 3
    retry_delay: float = 0.5  # Multiplied by attempt index
    missing_input_delay: float = 0.5
    activate_settle: float = 0.6  # After clicking the input box
    input_settle: float = 0.8  # After typing, until the send button renders
    button_attempts: int = 5
    button_retry_delay: float = 0.4
    post_send_delay: float = 0.3


@dataclass
class PollerConfig:
    """Payload source polling settings."""

    interval: float = 10.0
    request_timeout: float = 5.0


@dataclass
class RelayConfig:
    """Main configuration for relay CLI."""

    # Optional fields
    device: str | None = None
    contact: str | None = None
    source_url: str | None = None
    verbose: bool = False

    target_package: str = "com.tencent.mm"
    watch_interval: float = 1.0

    # Nested configs with defaults
    sender: SenderConfig = field(default_factory=SenderConfig)
    poller: PollerConfig = field(default_factory=PollerConfig)


class ConfigLoader:
    """Loads and merges configuration from multiple sources."""

    @classmethod
    def load(cls, require_source: bool = False) -> RelayConfig:
        """Load configuration with layered priority.

        Args:
            require_source: If True, raises ConfigError when no source URL is set.

        Returns:
            Merged RelayConfig instance.

        Raises:
            ConfigError: If require_source is True and no source URL is found.
        """
        config_dict: dict[str, Any] = {}

        # Layer 1: Global config (~/.relay.yaml)
        if GLOBAL_CONFIG.exists():
            global_data = cls._load_yaml(GLOBAL_CONFIG)
            config_dict = cls._deep_merge(config_dict, global_data)

        # Layer 2: Project config (.relay.yaml)
        if PROJECT_CONFIG.exists():
            project_data = cls._load_yaml(PROJECT_CONFIG)
            config_dict = cls._deep_merge(config_dict, project_data)

        # Layer 3: Environment variables (highest priority)
        env_overrides = cls._get_env_overrides()
        config_dict = cls._deep_merge(config_dict, env_overrides)

        config = cls._build_config(config_dict)

        if require_source and not config.source_url:
            raise ConfigError(
                "Payload source URL is required. "
                "Set it with: export RELAY_SOURCE_URL='http://host/api/message'"
            )

        return config

    @classmethod
    def _load_yaml(cls, path: Path) -> dict[str, Any]:
        """Load YAML file safely."""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except (yaml.YAMLError, OSError):
            return {}

    @classmethod
    def _get_env_overrides(cls) -> dict[str, Any]:
        """Get configuration overrides from environment variables."""
        overrides: dict[str, Any] = {}

        # Direct mappings
        if "RELAY_DEVICE" in os.environ:
            overrides["device"] = os.environ["RELAY_DEVICE"]

        if "RELAY_SOURCE_URL" in os.environ:
            overrides["source_url"] = os.environ["RELAY_SOURCE_URL"]

        if "RELAY_CONTACT" in os.environ:
            overrides["contact"] = os.environ["RELAY_CONTACT"]

        if "RELAY_VERBOSE" in os.environ:
            overrides["verbose"] = _parse_bool(os.environ["RELAY_VERBOSE"])

        if "RELAY_POLL_INTERVAL" in os.environ:
            overrides["poller"] = {"interval": os.environ["RELAY_POLL_INTERVAL"]}

        if "RELAY_SEND_TIMEOUT" in os.environ:
            overrides["sender"] = {"timeout": os.environ["RELAY_SEND_TIMEOUT"]}

        return overrides

    @classmethod
    def _deep_merge(cls, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries, with override taking precedence."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = cls._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    @classmethod
    def _build_config(cls, config_dict: dict[str, Any]) -> RelayConfig:
        """Build RelayConfig from dictionary."""
        sender_dict = config_dict.get("sender") or {}
        poller_dict = config_dict.get("poller") or {}
        defaults = SenderConfig()

        sender = SenderConfig(
            input_id=str(sender_dict.get("input_id") or defaults.input_id),
            input_class=str(sender_dict.get("input_class") or defaults.input_class),
            send_button_id=str(sender_dict.get("send_button_id") or defaults.send_button_id),
            send_button_class=str(
                sender_dict.get("send_button_class") or defaults.send_button_class
            ),
            timeout=_parse_duration(sender_dict.get("timeout"), defaults.timeout),
            max_attempts=_safe_int(sender_dict.get("max_attempts"), defaults.max_attempts),
            retry_delay=_parse_duration(sender_dict.get("retry_delay"), defaults.retry_delay),
            missing_input_delay=_parse_duration(
                sender_dict.get("missing_input_delay"), defaults.missing_input_delay
            ),
            activate_settle=_parse_duration(
                sender_dict.get("activate_settle"), defaults.activate_settle
            ),
            input_settle=_parse_duration(sender_dict.get("input_settle"), defaults.input_settle),
            button_attempts=_safe_int(
                sender_dict.get("button_attempts"), defaults.button_attempts
            ),
            button_retry_delay=_parse_duration(
                sender_dict.get("button_retry_delay"), defaults.button_retry_delay
            ),
            post_send_delay=_parse_duration(
                sender_dict.get("post_send_delay"), defaults.post_send_delay
            ),
        )

        poller = PollerConfig(
            interval=_parse_duration(poller_dict.get("interval"), 10.0),
            request_timeout=_parse_duration(poller_dict.get("request_timeout"), 5.0),
        )

        return RelayConfig(
            device=config_dict.get("device"),
            contact=config_dict.get("contact"),
            source_url=config_dict.get("source_url"),
            verbose=_parse_bool(config_dict.get("verbose"), False),
            target_package=str(config_dict.get("target_package") or "com.tencent.mm"),
            watch_interval=_parse_duration(config_dict.get("watch_interval"), 1.0),
            sender=sender,
            poller=poller,
        )


def setup_logging(verbose: bool, log_dir: Path | None) -> Path | None:
    """Configure file-based DEBUG logging.

    Args:
        verbose: Enable logging when True
        log_dir: Directory to write debug.log

    Returns:
        Path to log file if created, None otherwise
    """
    if not verbose or log_dir is None:
        return None

    log_file = log_dir / "debug.log"
    log_dir.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s.%(msecs)03d [%(levelname)-5s] %(name)-20s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))

    # Configure root relay logger (clear existing handlers to prevent duplicates)
    relay_logger = logging.getLogger("relay")
    for old in list(relay_logger.handlers):
        old.close()
    relay_logger.handlers.clear()
    relay_logger.setLevel(logging.DEBUG)
    relay_logger.addHandler(handler)

    return log_file
