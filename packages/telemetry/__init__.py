"""Logging and metrics helpers for flowtypes."""

from . import logger, metrics

__all__ = ["logger", "metrics"]
