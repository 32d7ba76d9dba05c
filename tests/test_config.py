from __future__ import annotations

from pathlib import Path

import pytest

from latest.core.config import (
    DEFAULT_CACHE_TTL,
    DEFAULT_CONCURRENCY,
    DEFAULT_TIMEOUT,
    default_cache_dir,
    default_config_dir,
    load_settings,
)


def write_config(directory: Path, text: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "config.toml").write_text(text)
    return directory


def test_missing_file_gives_defaults(tmp_path: Path):
    settings = load_settings(tmp_path)
    assert settings.precedence is None
    assert settings.cache_ttl == DEFAULT_CACHE_TTL
    assert settings.timeout == DEFAULT_TIMEOUT
    assert settings.concurrency == DEFAULT_CONCURRENCY
    assert settings.config_dir == tmp_path


def test_full_file(tmp_path: Path):
    config_dir = write_config(tmp_path, """
precedence = ["path", "npm", "pip"]
cache_ttl = 60
cache_dir = "~/somewhere"
timeout = 2
concurrency = 4
future_option = true
""")
    settings = load_settings(config_dir)
    assert settings.precedence == ["path", "npm", "pip"]
    assert settings.cache_ttl == 60
    assert settings.cache_dir == Path("~/somewhere").expanduser()
    assert settings.timeout == 2.0
    assert settings.concurrency == 4


def test_malformed_file_falls_back_to_defaults(tmp_path: Path):
    config_dir = write_config(tmp_path, "precedence = [\"path\"")
    settings = load_settings(config_dir)
    assert settings.precedence is None
    assert settings.cache_ttl == DEFAULT_CACHE_TTL


@pytest.mark.parametrize(
    "line,field",
    [
        ('precedence = "path"', "precedence"),
        ("precedence = [1, 2]", "precedence"),
        ("cache_ttl = -5", "cache_ttl"),
        ('cache_ttl = "1h"', "cache_ttl"),
        ("timeout = 0", "timeout"),
        ("concurrency = true", "concurrency"),
        ("cache_dir = 3", "cache_dir"),
    ],
)
def test_wrongly_typed_field_keeps_default(tmp_path: Path, line, field):
    config_dir = write_config(tmp_path, f"{line}\n")
    defaults = load_settings(tmp_path / "nowhere")
    assert getattr(load_settings(config_dir), field) == getattr(defaults, field)


def test_valid_fields_survive_an_invalid_neighbour(tmp_path: Path):
    config_dir = write_config(tmp_path, 'precedence = ["npm"]\ncache_ttl = "forever"\n')
    settings = load_settings(config_dir)
    assert settings.precedence == ["npm"]
    assert settings.cache_ttl == DEFAULT_CACHE_TTL


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LATEST_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setenv("LATEST_CACHE_DIR", str(tmp_path / "c"))
    assert default_config_dir() == tmp_path / "cfg"
    assert default_cache_dir() == tmp_path / "c"

    write_config(tmp_path / "cfg", "cache_ttl = 5\n")
    assert load_settings().cache_ttl == 5


def test_home_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("LATEST_CONFIG_DIR")
    monkeypatch.delenv("LATEST_CACHE_DIR")
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_config_dir() == tmp_path / ".latest"
    assert default_cache_dir() == tmp_path / ".latest" / "cache"
