from pathlib import Path

import pytest

from argcache.config import CacheConfig, DEFAULT_CONFIG, configure_logging, load_config

DEFAULTS_PATH = Path(__file__).parent.parent / "config" / "argcache.defaults.yml"


def test_load_shipped_defaults():
    cfg = load_config(DEFAULTS_PATH)

    assert cfg == DEFAULT_CONFIG
    assert cfg.strict_key_order is True


def test_load_config_partial(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("thread_safe: false", encoding="utf-8")

    cfg = load_config(path)

    assert isinstance(cfg, CacheConfig)
    assert cfg.thread_safe is False
    assert cfg.weak_keys is True


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("", encoding="utf-8")

    assert load_config(path) == CacheConfig()


def test_env_overrides(monkeypatch, tmp_path):
    source = tmp_path / "config.yml"
    source.write_text("weak_keys: true", encoding="utf-8")

    monkeypatch.setenv("ARGCACHE_WEAK_KEYS", "off")
    monkeypatch.setenv("ARGCACHE_STRICT_KEY_ORDER", "0")
    monkeypatch.setenv("ARGCACHE_LOG_LEVEL", "debug")

    cfg = load_config(source)

    assert cfg.weak_keys is False
    assert cfg.strict_key_order is False
    assert cfg.log_level == "DEBUG"


def test_bad_env_flag(monkeypatch, tmp_path):
    source = tmp_path / "config.yml"
    source.write_text("", encoding="utf-8")
    monkeypatch.setenv("ARGCACHE_THREAD_SAFE", "maybe")

    with pytest.raises(ValueError):
        load_config(source)


def test_schema_rejects_unknown_and_mistyped(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("weak_keys: 'yes'\nttl: 5", encoding="utf-8")

    with pytest.raises(ValueError, match="validation failed"):
        load_config(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yml")


def test_configure_logging():
    logger = configure_logging(CacheConfig(log_level="ERROR"))
    assert logger.name == "argcache"
    assert logger.level == 40
