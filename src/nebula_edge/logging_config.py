import re
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from loguru import logger

REDACTED = "[REDACTED]"

_BEARER_RE = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)
_API_KEY_RE = re.compile(r"\bsk-[A-Za-z0-9_\-]+")


def redact_credentials(text: str) -> str:
    """Mask bearer tokens and ``sk-...`` API keys."""
    text = _BEARER_RE.sub(rf"\g<1>{REDACTED}", text)
    return _API_KEY_RE.sub(REDACTED, text)


def _redact_record(record: dict) -> bool:
    record["message"] = redact_credentials(record["message"])
    return True


def _add_console(level: str) -> str:
    logger.add(
        sys.stderr,
        level=level,
        filter=_redact_record,
        format="<level>{level:<8}</level> | <cyan>{name}</cyan> - <level>{message}</level>",
    )
    return f"console (stderr, {level})"


def _add_file(level: str, path: str = "nebula_edge.log", rotation: str = "5 MB", retention: int = 3) -> str:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        path,
        level=level,
        filter=_redact_record,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} - {message}",
        rotation=rotation,
        retention=retention,
    )
    return f"file ({path}, {level})"


_SINKS: dict[str, Callable[..., str]] = {
    "console": _add_console,
    "file": _add_file,
}

# Console stays at WARNING so log lines don't interleave with the chat transcript.
_DEFAULT_SINKS = [
    {"type": "console", "level": "WARNING"},
    {"type": "file"},
]


def setup_logging(level: str = "INFO", consumers: list[dict[str, Any]] | None = None) -> list[str]:
    """Replace loguru's default sink with the configured ones.

    Every sink masks credentials. Returns a description per registered sink.
    """
    logger.remove()

    descriptions: list[str] = []
    for config in consumers if consumers is not None else _DEFAULT_SINKS:
        sink_type = config.get("type", "")
        add_sink = _SINKS.get(sink_type)
        if add_sink is None:
            logger.warning(f"Unknown log consumer type: {sink_type!r}")
            continue
        options = {k: v for k, v in config.items() if k not in ("type", "level")}
        descriptions.append(add_sink(config.get("level", level), **options))

    return descriptions
