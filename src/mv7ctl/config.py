"""
Configuration management for mv7ctl.

Handles loading, validation, and access to tool configuration. Nothing
here is written back; device settings live on the device.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from mv7ctl.device.constants import PROFILES, DeviceProfile, Timing, get_profile


CONFIG_ENV_VAR = "MV7CTL_CONFIG"
USER_CONFIG_PATH = Path("~/.config/mv7ctl/config.yaml")


@dataclass
class LoggingConfig:
    """Logging settings."""

    log_level: str = "warning"
    log_file: str | None = None


@dataclass
class DeviceConfig:
    """Device selection."""

    profile: str = "mv7"

    def get_profile(self) -> DeviceProfile:
        return get_profile(self.profile)


@dataclass
class MV7Config:
    """Main configuration container."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    timing: Timing = field(default_factory=Timing)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MV7Config:
        """Create configuration from dictionary."""
        return cls(
            logging=LoggingConfig(**_section(data, "logging")),
            device=DeviceConfig(**_section(data, "device")),
            timing=Timing(**_section(data, "timing")),
        )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return one config section; an empty section yields defaults."""
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ValueError(f"Section '{name}' must be a mapping")
    return section


def load_config(path: str | Path | None = None) -> MV7Config:
    """
    Load configuration from YAML file.

    Args:
        path: Path to configuration file. If None, uses $MV7CTL_CONFIG
            when set, otherwise the first existing default path.

    Returns:
        MV7Config instance with loaded settings.

    Raises:
        FileNotFoundError: If an explicit or $MV7CTL_CONFIG file is not found.
        yaml.YAMLError: If config file is invalid YAML.
        ValueError: If the file or one of its sections is not a mapping.
        TypeError: If a section contains an unknown key.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or None

    if path is None:
        for candidate in (USER_CONFIG_PATH.expanduser(), Path("mv7ctl.yaml")):
            if candidate.exists():
                path = candidate
                break
        else:
            return MV7Config()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")

    return MV7Config.from_dict(data)


def validate_config(config: MV7Config) -> list[str]:
    """
    Validate configuration and return list of errors.

    Args:
        config: Configuration to validate.

    Returns:
        List of error messages. Empty list if valid.
    """
    errors: list[str] = []

    valid_log_levels = {"debug", "info", "warning", "error"}
    if str(config.logging.log_level) not in valid_log_levels:
        errors.append(f"Invalid log_level: {config.logging.log_level}")

    if str(config.device.profile).lower() not in PROFILES:
        errors.append(f"Unknown device profile: {config.device.profile}")

    timing = config.timing
    for name, minimum in (
        ("control_timeout_ms", 1),
        ("write_timeout_ms", 1),
        ("read_timeout_ms", 1),
        ("drain_timeout_ms", 1),
        ("drain_max_reads", 1),
        ("settle_delay", 0),
    ):
        value = getattr(timing, name)
        if not _is_number(value):
            errors.append(f"Invalid {name}: {value!r} is not a number")
        elif value < minimum:
            errors.append(f"Invalid {name}: {value}")

    return errors


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
