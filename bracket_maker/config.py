"""Environment configuration for the bracket maker."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

DEFAULT_STORE_PATH = "tournaments.json"
DEFAULT_NAMESPACE = "default"
DEFAULT_CLOUD_TIMEOUT = 10.0


def env_bool(name: str, *, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    return default


def env_int(name: str, *, default: int | None = None) -> int | None:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, *, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_str(name: str) -> str | None:
    raw = os.getenv(name)
    if raw is None:
        return None
    value = raw.strip()
    return value or None


@dataclass(frozen=True)
class AppConfig:
    store_path: Path
    table_name: str | None
    aws_region: str
    namespace: str
    cloud_url: str | None
    cloud_app_key: str | None
    cloud_timeout: float
    random_seed: int | None
    log_level: str
    cloud_enabled: bool = True

    @property
    def uses_dynamodb(self) -> bool:
        return self.cloud_enabled and self.table_name is not None

    @property
    def uses_remote(self) -> bool:
        return self.cloud_enabled and self.cloud_url is not None


def read_config() -> AppConfig:
    return AppConfig(
        store_path=Path(env_str("BRACKET_STORE_PATH") or DEFAULT_STORE_PATH),
        table_name=env_str("BRACKET_TABLE_NAME"),
        aws_region=env_str("AWS_REGION") or "us-east-1",
        namespace=env_str("BRACKET_NAMESPACE") or DEFAULT_NAMESPACE,
        cloud_url=env_str("BRACKET_CLOUD_URL"),
        cloud_app_key=env_str("BRACKET_CLOUD_APP_KEY"),
        cloud_timeout=env_float("BRACKET_CLOUD_TIMEOUT", default=DEFAULT_CLOUD_TIMEOUT),
        random_seed=env_int("BRACKET_RANDOM_SEED"),
        log_level=(env_str("BRACKET_LOG_LEVEL") or "INFO").upper(),
        cloud_enabled=env_bool("BRACKET_CLOUD_ENABLED", default=True),
    )


__all__ = [
    "AppConfig",
    "DEFAULT_NAMESPACE",
    "DEFAULT_STORE_PATH",
    "env_bool",
    "env_float",
    "env_int",
    "env_str",
    "read_config",
]
