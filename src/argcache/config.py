"""Configuration loader for argument caches."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict

import yaml
from jsonschema import Draft7Validator

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "strict_key_order": {"type": "boolean"},
        "thread_safe": {"type": "boolean"},
        "weak_keys": {"type": "boolean"},
        "log_level": {
            "type": "string",
            "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        },
    },
    "additionalProperties": False,
}

_validator = Draft7Validator(CONFIG_SCHEMA)


@dataclass(frozen=True)
class CacheConfig:
    strict_key_order: bool = True
    thread_safe: bool = True
    weak_keys: bool = True
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheConfig":
        validate_config(data)
        return cls(
            strict_key_order=bool(data.get("strict_key_order", True)),
            thread_safe=bool(data.get("thread_safe", True)),
            weak_keys=bool(data.get("weak_keys", True)),
            log_level=data.get("log_level", "WARNING"),
        )


DEFAULT_CONFIG = CacheConfig()

ENV_MAP = {
    "strict_key_order": "ARGCACHE_STRICT_KEY_ORDER",
    "thread_safe": "ARGCACHE_THREAD_SAFE",
    "weak_keys": "ARGCACHE_WEAK_KEYS",
    "log_level": "ARGCACHE_LOG_LEVEL",
}

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def validate_config(payload: Dict[str, Any]) -> None:
    errors = sorted(_validator.iter_errors(payload), key=lambda e: e.path)
    if errors:
        messages = ", ".join(error.message for error in errors)
        raise ValueError(f"cache config validation failed: {messages}")


def _parse_bool(env_name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"{env_name} must be a boolean flag, got {raw!r}")


def load_yaml(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def merge_env_overrides(config_data: Dict[str, Any]) -> Dict[str, Any]:
    merged = json.loads(json.dumps(config_data))  # deep copy via json

    for key, env_name in ENV_MAP.items():
        if env_name not in os.environ:
            continue
        value: Any = os.environ[env_name]
        if key == "log_level":
            value = value.strip().upper()
        else:
            value = _parse_bool(env_name, value)
        merged[key] = value

    return merged


def load_config(config_path: str | Path = "config/argcache.defaults.yml") -> CacheConfig:
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    data = load_yaml(path)
    data = merge_env_overrides(data)
    return CacheConfig.from_dict(data)


def configure_logging(config: CacheConfig = DEFAULT_CONFIG) -> logging.Logger:
    """Apply the configured level to the package logger."""
    package_logger = logging.getLogger("argcache")
    package_logger.setLevel(config.log_level)
    return package_logger
