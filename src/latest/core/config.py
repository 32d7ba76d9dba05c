"""Configuration module for the latest command."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from latest.core.errors import ConfigMalformedError
from latest.core.logging import get_logger

log = get_logger(__name__)

DEFAULT_CACHE_TTL = 3600
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONCURRENCY = 16
CONFIG_FILE = "config.toml"


def default_config_dir() -> Path:
    """Directory holding config.toml, honouring LATEST_CONFIG_DIR."""
    override = os.environ.get("LATEST_CONFIG_DIR")
    return Path(override) if override else Path.home() / ".latest"


def default_cache_dir() -> Path:
    """Directory holding cached provider responses, honouring LATEST_CACHE_DIR."""
    override = os.environ.get("LATEST_CACHE_DIR")
    return Path(override) if override else Path.home() / ".latest" / "cache"


@dataclass
class Settings:
    """Runtime settings for a lookup run."""

    precedence: list[str] | None = None
    cache_ttl: int = DEFAULT_CACHE_TTL
    cache_dir: Path = field(default_factory=default_cache_dir)
    config_dir: Path = field(default_factory=default_config_dir)
    timeout: float = DEFAULT_TIMEOUT
    concurrency: int = DEFAULT_CONCURRENCY


def load_settings(config_dir: Path | None = None) -> Settings:
    """Load settings from ``<config_dir>/config.toml``.

    A missing file gives defaults. A malformed file, or a field of the
    wrong type, is logged and replaced by its default; unknown keys are
    ignored.

    Args:
        config_dir: Directory to read from; defaults to default_config_dir().

    Returns:
        The resolved Settings.
    """
    config_dir = config_dir or default_config_dir()
    settings = Settings(config_dir=config_dir)
    path = config_dir / CONFIG_FILE

    try:
        raw = tomllib.loads(path.read_text())
    except FileNotFoundError:
        log.debug("config_missing", path=str(path))
        return settings
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        err = ConfigMalformedError("Could not read configuration file", path=str(path))
        log.warning("config_malformed", error=str(err), reason=str(e))
        return settings

    for name, parse in _FIELDS.items():
        if name not in raw:
            continue
        try:
            setattr(settings, name, parse(raw[name]))
        except ConfigMalformedError as e:
            log.warning("config_malformed", error=str(e.with_context(path=str(path))))

    log.debug("config_loaded", path=str(path), precedence=settings.precedence)
    return settings


def _precedence(value: Any) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigMalformedError("precedence must be a list of source names", field="precedence")
    return value


def _positive_int(name: str):
    def parse(value: Any) -> int:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ConfigMalformedError(f"{name} must be a positive integer", field=name)
        return value
    return parse


def _positive_float(name: str):
    def parse(value: Any) -> float:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigMalformedError(f"{name} must be a positive number", field=name)
        return float(value)
    return parse


def _directory(value: Any) -> Path:
    if not isinstance(value, str) or not value:
        raise ConfigMalformedError("cache_dir must be a path", field="cache_dir")
    return Path(value).expanduser()


_FIELDS = {
    "precedence": _precedence,
    "cache_ttl": _positive_int("cache_ttl"),
    "cache_dir": _directory,
    "timeout": _positive_float("timeout"),
    "concurrency": _positive_int("concurrency"),
}
