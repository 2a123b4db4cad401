"""Configuration loader for handy-client."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from . import constants
from .core.models import LogMode


@dataclass(slots=True)
class DeviceConfig:
    connection_key: str = ""


@dataclass(slots=True)
class ApiConfig:
    base_url: str = constants.DEFAULT_API_BASE_URL
    upload_url: str = constants.DEFAULT_UPLOAD_URL
    request_timeout_seconds: float = constants.DEFAULT_REQUEST_TIMEOUT_SECONDS
    upload_timeout_seconds: float = constants.DEFAULT_UPLOAD_TIMEOUT_SECONDS
    # Only valid for the API version that reports stepSpeed values four times too large.
    speed_correction_factor: float = constants.DEFAULT_SPEED_CORRECTION_FACTOR


@dataclass(slots=True)
class SyncConfig:
    trips: int = constants.DEFAULT_SYNC_TRIPS
    prepare_timeout_ms: int = constants.DEFAULT_PREPARE_TIMEOUT_MS


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_mode: LogMode = LogMode.ERRORS
    log_network: bool = False


@dataclass(slots=True)
class HandyConfig:
    device: DeviceConfig = field(default_factory=DeviceConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    raw: ConfigParser = field(default_factory=ConfigParser)
    path: Path = constants.DEFAULT_CONFIG_PATH


def _positive_float(parser: ConfigParser, section: str, option: str, default: float) -> float:
    try:
        value = parser.getfloat(section, option, fallback=default)
    except ValueError:
        return default
    return value if value > 0 else default


def _int_option(parser: ConfigParser, section: str, option: str, default: int) -> int:
    try:
        return parser.getint(section, option, fallback=default)
    except ValueError:
        return default


def _bool_option(parser: ConfigParser, section: str, option: str, default: bool) -> bool:
    try:
        return parser.getboolean(section, option, fallback=default)
    except ValueError:
        return default


def load_config(path: Optional[Path] = None) -> HandyConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "device": {
                "connection_key": "",
            },
            "api": {
                "base_url": constants.DEFAULT_API_BASE_URL,
                "upload_url": constants.DEFAULT_UPLOAD_URL,
                "request_timeout_seconds": str(constants.DEFAULT_REQUEST_TIMEOUT_SECONDS),
                "upload_timeout_seconds": str(constants.DEFAULT_UPLOAD_TIMEOUT_SECONDS),
                "speed_correction_factor": str(constants.DEFAULT_SPEED_CORRECTION_FACTOR),
            },
            "sync": {
                "trips": str(constants.DEFAULT_SYNC_TRIPS),
                "prepare_timeout_ms": str(constants.DEFAULT_PREPARE_TIMEOUT_MS),
            },
            "logging": {
                "level": "INFO",
                "path": "",
                "log_mode": LogMode.ERRORS.name.lower(),
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    device = DeviceConfig(
        connection_key=parser.get("device", "connection_key", fallback="").strip(),
    )

    api = ApiConfig(
        base_url=parser.get("api", "base_url").rstrip("/"),
        upload_url=parser.get("api", "upload_url"),
        request_timeout_seconds=_positive_float(
            parser, "api", "request_timeout_seconds", constants.DEFAULT_REQUEST_TIMEOUT_SECONDS
        ),
        upload_timeout_seconds=_positive_float(
            parser, "api", "upload_timeout_seconds", constants.DEFAULT_UPLOAD_TIMEOUT_SECONDS
        ),
        speed_correction_factor=_positive_float(
            parser, "api", "speed_correction_factor", constants.DEFAULT_SPEED_CORRECTION_FACTOR
        ),
    )

    sync = SyncConfig(
        trips=max(1, _int_option(parser, "sync", "trips", constants.DEFAULT_SYNC_TRIPS)),
        prepare_timeout_ms=max(
            1,
            _int_option(
                parser, "sync", "prepare_timeout_ms", constants.DEFAULT_PREPARE_TIMEOUT_MS
            ),
        ),
    )

    log_path_value = parser.get("logging", "path", fallback="").strip()
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_mode=LogMode.parse(
            parser.get("logging", "log_mode", fallback="errors"), LogMode.ERRORS
        ),
        log_network=_bool_option(parser, "logging", "log_network", False),
    )

    return HandyConfig(
        device=device,
        api=api,
        sync=sync,
        logging=logging_config,
        raw=parser,
        path=config_path,
    )


def save_config(config: HandyConfig) -> None:
    """Persist the current configuration to disk."""

    raw = config.raw
    if not raw.has_section("device"):
        raw.add_section("device")
    raw.set("device", "connection_key", config.device.connection_key)
    if not raw.has_section("logging"):
        raw.add_section("logging")
    raw.set("logging", "log_mode", config.logging.log_mode.name.lower())

    config_path = config.path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as stream:
        raw.write(stream)
