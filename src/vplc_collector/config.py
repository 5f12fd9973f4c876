"""
vPLC Collector configuration

Collector settings from the environment and the device access list loaded
once at startup.

Author: uldyssian-sh
License: MIT
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog
import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationError
from .models import AccessList, DeviceRecord

logger = structlog.get_logger(__name__)

ACCESS_FILE_ENV = "VPLC_ACCESS_FILE"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("json", "console")


@dataclass
class CollectorSettings:
    """Runtime settings for the collector process"""
    access_file: str = ""
    host: str = "0.0.0.0"
    port: int = 2112
    interval: float = 10.0
    request_timeout: float = 8.0
    verify_ssl: bool = False
    log_level: str = "INFO"
    log_format: str = "json"

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ConfigurationError(f"Scrape interval must be positive, got {self.interval}")
        if self.request_timeout <= 0:
            raise ConfigurationError(f"Request timeout must be positive, got {self.request_timeout}")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"Invalid metrics port: {self.port}")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level: {self.log_level}")
        self.log_level = self.log_level.upper()
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(f"Unknown log format: {self.log_format}")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 **overrides: Any) -> "CollectorSettings":
        """Build settings from VPLC_* environment variables.

        Keyword overrides that are not None take precedence over the
        environment.
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {
            "access_file": env.get(ACCESS_FILE_ENV, ""),
            "host": env.get("VPLC_COLLECTOR_HOST", "0.0.0.0"),
            "port": _env_value(env, "VPLC_COLLECTOR_PORT", int, 2112),
            "interval": _env_value(env, "VPLC_SCRAPE_INTERVAL", float, 10.0),
            "request_timeout": _env_value(env, "VPLC_REQUEST_TIMEOUT", float, 8.0),
            "verify_ssl": env.get("VPLC_VERIFY_SSL", "false").lower() in ("1", "true", "yes"),
            "log_level": env.get("VPLC_LOG_LEVEL", "INFO").upper(),
            "log_format": env.get("VPLC_LOG_FORMAT", "json").lower(),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _env_value(env: Mapping[str, str], name: str, convert: Callable[[str], Any],
               default: Any) -> Any:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return convert(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid value for {name}: {raw!r}")


def load_device_records(path: Optional[str]) -> List[DeviceRecord]:
    """Load and validate the vPLC access list.

    The file is JSON or YAML (by extension) of the form
    ``{"vplcs": [{"name", "loginUrl", "apiUrl", "user", "password"}]}``.
    Any problem raises ConfigurationError; the collector must not start
    without a usable device list.
    """
    if not path:
        raise ConfigurationError(
            f"Environment variable {ACCESS_FILE_ENV} is not set or empty")

    access_file = Path(path)
    try:
        with open(access_file, "r", encoding="utf-8") as f:
            if access_file.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Error opening access file {path}: {e}") from e
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Error parsing access file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Access file {path} must contain a mapping")

    try:
        access_list = AccessList.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid access file {path}: {e}") from e

    logger.info("Access file loaded", path=str(access_file),
                instances=[record.name for record in access_list.instances])
    return access_list.instances
