"""Helpers for reading configuration and metadata documents from disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

__all__ = ["load_config"]


def load_config(path: str | Path) -> dict[str, Any]:
    """Return the mapping stored at ``path``.

    ``.json`` files are read with :mod:`json`; everything else goes through
    :func:`yaml.safe_load`.  An empty document yields ``{}``.  Raises
    :class:`FileNotFoundError` for a missing file and :class:`ValueError` when
    the document is malformed or its root is not a mapping.
    """

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"configuration file not found: {config_path}")
    raw_text = config_path.read_text(encoding="utf-8")
    if config_path.suffix.lower() == ".json":
        try:
            data = json.loads(raw_text) if raw_text.strip() else None
        except json.JSONDecodeError as exc:
            raise ValueError(f"failed to parse {config_path.name}: {exc}") from exc
    else:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ValueError(f"failed to parse {config_path.name}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"root of {config_path.name} must be a mapping")
    return data
