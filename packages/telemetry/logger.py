"""Logging setup for the ``flowtypes`` logger hierarchy.

Loggers are configured lazily, once per process, from
``configs/logging.yaml``.  Only the top-level keys understood by
:func:`logging.config.dictConfig` are taken from the file; a missing or
unreadable file leaves the built-in stderr setup in place.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from threading import RLock
from typing import Any

from packages.utils.config import load_config

LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "configs" / "logging.yaml"

_DICTCONFIG_KEYS = frozenset(
    {"version", "disable_existing_loggers", "formatters", "filters", "handlers", "root", "loggers"}
)

_lock = RLock()
_configured = False


def _fallback_config(level: str = "INFO") -> dict[str, Any]:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"plain": {"format": "%(levelname)s %(name)s: %(message)s"}},
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "plain",
            }
        },
        "loggers": {"flowtypes": {"level": level, "handlers": ["stderr"], "propagate": False}},
    }


def _load_config(path: Path) -> dict[str, Any]:
    config = _fallback_config()
    if not path.exists():
        return config
    try:
        data = load_config(path)
    except ValueError as exc:
        logging.getLogger("flowtypes.telemetry").warning("ignoring %s: %s", path.name, exc)
        return config
    config.update((key, value) for key, value in data.items() if key in _DICTCONFIG_KEYS)
    return config


def configure(path: Path | None = None) -> None:
    """Apply the logging configuration; calls after the first are no-ops."""

    global _configured
    with _lock:
        if _configured:
            return
        logging.config.dictConfig(_load_config(path or LOGGING_CONFIG_PATH))
        _configured = True


def get_logger(name: str) -> logging.Logger:
    if not isinstance(name, str) or not name:
        raise ValueError("logger name must be a non-empty string")
    configure()
    return logging.getLogger(name)


__all__ = ["LOGGING_CONFIG_PATH", "configure", "get_logger"]
