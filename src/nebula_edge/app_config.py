from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

from nebula_edge.inference_client import DEFAULT_ENDPOINT, DEFAULT_MODEL


@dataclass
class RuntimeEnv:
    api_key: str | None


@dataclass
class AppConfig:
    endpoint: str
    model: str
    request_timeout_seconds: float | None
    retry_attempts: int
    user_name: str
    log_level: str
    log_consumers: list | None


def load_json_config(path: Path | None = None) -> dict:
    config_path = path or Path.cwd() / "config.json"
    if config_path.exists():
        with open(config_path) as f:
            return json.load(f)
    return {}


def _to_optional_float(value: object) -> float | None:
    if value is None:
        return None
    if isinstance(value, str):
        stripped = value.strip().lower()
        if stripped in {"", "none", "null"}:
            return None
        value = stripped
    seconds = float(value)
    if seconds <= 0:
        return None
    return seconds


def parse_app_config(config: dict) -> AppConfig:
    return AppConfig(
        endpoint=str(config.get("Endpoint", DEFAULT_ENDPOINT)).strip(),
        model=str(config.get("Model", DEFAULT_MODEL)).strip(),
        request_timeout_seconds=_to_optional_float(config.get("RequestTimeoutSeconds")),
        retry_attempts=max(1, int(config.get("RetryAttempts", 1))),
        user_name=str(config.get("UserName", "there")).strip() or "there",
        log_level=config.get("LogLevel", "INFO"),
        log_consumers=config.get("LogConsumers"),
    )


def resolve_runtime_env() -> RuntimeEnv:
    return RuntimeEnv(api_key=(os.environ.get("NEBULA_API_KEY") or "").strip() or None)
