"""Configuration management for chunked transfers."""

import json
import os
import shutil
from pathlib import Path
from typing import Any, Optional

from common.constants import (
    CHUNK_SIZE_BYTES,
    DEFAULT_CHANNEL_DIR,
    DEFAULT_DOWNLOAD_DIR,
    EXPIRY_WINDOW_SECONDS,
    MAX_OBJECT_SIZE_BYTES,
    SWEEP_INTERVAL_SECONDS,
    TRANSPORT_LIMIT_BYTES,
)
from common.exceptions import ConfigError
from common.logging_config import get_logger

logger = get_logger(__name__)


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.environ.get(name)
    if value is None:
        return default
    if value.strip().lower() in ("", "none", "null"):
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {value!r}")


def default_config() -> dict:
    """
    Build default configuration, honouring CHUNKRELAY_* environment overrides.

    Returns:
        Configuration dictionary
    """
    return {
        "chunk_size": _env_int("CHUNKRELAY_CHUNK_SIZE", CHUNK_SIZE_BYTES),
        "transport_limit": _env_int("CHUNKRELAY_TRANSPORT_LIMIT", TRANSPORT_LIMIT_BYTES),
        "expiry_window_seconds": _env_float("CHUNKRELAY_EXPIRY_WINDOW", EXPIRY_WINDOW_SECONDS),
        "sweep_interval_seconds": _env_float("CHUNKRELAY_SWEEP_INTERVAL", SWEEP_INTERVAL_SECONDS),
        "max_object_size": _env_int("CHUNKRELAY_MAX_OBJECT_SIZE", MAX_OBJECT_SIZE_BYTES),
        "resolve_concurrency": 1,
        "auto_merge": True,
        "channel_dir": os.environ.get("CHUNKRELAY_CHANNEL_DIR", DEFAULT_CHANNEL_DIR),
        "download_dir": os.environ.get("CHUNKRELAY_DOWNLOAD_DIR", DEFAULT_DOWNLOAD_DIR),
    }


class TransferConfig:
    """Transfer settings layered as: defaults < environment < JSON config file < overrides."""

    def __init__(self, config_path: Optional[Path] = None, **overrides: Any):
        """
        Initialize configuration.

        Args:
            config_path: Path to config JSON file (typically ~/.chunkrelay/config.json).
                None keeps configuration in memory only.
            **overrides: Values taking precedence over file and environment
        """
        self.config_path = Path(config_path).expanduser() if config_path else None
        self.data = self._load()
        self.data.update(overrides)
        self.validate()

    def _load(self) -> dict:
        """
        Load configuration from file, creating it with defaults if missing.

        Returns:
            Configuration dictionary
        """
        config = default_config()
        if self.config_path is None:
            return config

        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.config_path.exists():
            self._write(config)
            return config

        try:
            with open(self.config_path, "r") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config root must be a JSON object")
            config.update(data)
            return config
        except (ValueError, OSError) as e:
            backup_path = self.config_path.with_suffix(".json.bak")
            logger.warning(
                f"Unreadable config at {self.config_path} ({e}), using defaults; "
                f"backup written to {backup_path}"
            )
            try:
                shutil.copy(self.config_path, backup_path)
            except OSError as copy_error:
                logger.warning(f"Could not back up config file: {copy_error}")
            return config

    def _write(self, data: dict) -> None:
        try:
            with open(self.config_path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.warning(f"Failed to write config to {self.config_path}: {e}")

    def save(self) -> None:
        """Save current configuration to file (no-op for in-memory configs)."""
        if self.config_path is not None:
            self._write(self.data)

    def set(self, key: str, value: Any) -> None:
        """
        Set one option, re-validate and save.

        Raises:
            ConfigError: If the key is unknown or the new value is invalid
        """
        if key not in default_config():
            raise ConfigError(f"Unknown config option: {key}")
        previous = self.data.get(key)
        self.data[key] = value
        try:
            self.validate()
        except ConfigError:
            self.data[key] = previous
            raise
        self.save()

    def validate(self) -> None:
        """
        Check option consistency.

        Raises:
            ConfigError: If any option is out of range
        """
        chunk_size = self.data.get("chunk_size")
        limit = self.data.get("transport_limit")
        if not isinstance(chunk_size, int) or chunk_size <= 0:
            raise ConfigError(f"chunk_size must be a positive integer, got {chunk_size!r}")
        if limit is not None:
            if not isinstance(limit, int) or limit <= 0:
                raise ConfigError(f"transport_limit must be a positive integer, got {limit!r}")
            if chunk_size >= limit:
                raise ConfigError(
                    f"chunk_size ({chunk_size}) must stay below the transport limit ({limit})"
                )

        for key in ("expiry_window_seconds", "sweep_interval_seconds"):
            value = self.data.get(key)
            if not isinstance(value, (int, float)) or value <= 0:
                raise ConfigError(f"{key} must be positive, got {value!r}")

        max_size = self.data.get("max_object_size")
        if max_size is not None and (not isinstance(max_size, int) or max_size <= 0):
            raise ConfigError(f"max_object_size must be a positive integer or null, got {max_size!r}")

        concurrency = self.data.get("resolve_concurrency")
        if not isinstance(concurrency, int) or concurrency < 1:
            raise ConfigError(f"resolve_concurrency must be >= 1, got {concurrency!r}")

    def get_chunk_size(self) -> int:
        return self.data["chunk_size"]

    def get_transport_limit(self) -> Optional[int]:
        return self.data.get("transport_limit")

    def get_expiry_window(self) -> float:
        return float(self.data["expiry_window_seconds"])

    def get_sweep_interval(self) -> float:
        return float(self.data["sweep_interval_seconds"])

    def get_max_object_size(self) -> Optional[int]:
        return self.data.get("max_object_size")

    def get_resolve_concurrency(self) -> int:
        return self.data["resolve_concurrency"]

    def get_auto_merge(self) -> bool:
        return bool(self.data.get("auto_merge", True))

    def get_channel_dir(self) -> Path:
        return Path(self.data["channel_dir"]).expanduser()

    def get_download_dir(self) -> Path:
        return Path(self.data["download_dir"]).expanduser()
