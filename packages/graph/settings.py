"""Typed editor settings loaded from YAML."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from packages.utils.config import load_config

from .colors import DEFAULT_PALETTE, RGB, UNRESOLVED_COLOR

__all__ = ["DEFAULT_SETTINGS_PATH", "EditorConfig", "load_settings"]

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parents[2] / "configs" / "editor" / "default.yaml"


def _as_path(value: Path | str | None) -> Path | None:
    if value is None:
        return None
    return value if isinstance(value, Path) else Path(value)


def _as_rgb(value: Any, *, fallback: RGB) -> RGB:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 3:
        try:
            return (int(value[0]), int(value[1]), int(value[2]))
        except (TypeError, ValueError):
            return fallback
    return fallback


def _deep_update(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``updates`` recursively merged."""

    result: dict[str, Any] = {key: value for key, value in base.items()}
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = _deep_update(result[key], value)
        else:
            result[key] = value
    return result


@dataclass(slots=True)
class EditorConfig:
    """Settings for the graph editor collaborator.

    ``colors`` holds palette overrides that are layered over
    :data:`~packages.graph.colors.DEFAULT_PALETTE`; use :attr:`palette` for the
    merged view.
    """

    colors: dict[str, RGB] = field(default_factory=dict)
    unresolved_color: RGB = UNRESOLVED_COLOR
    start_node_id: str = "start"
    node_metas_path: Path | None = None

    @property
    def palette(self) -> dict[str, RGB]:
        merged = dict(DEFAULT_PALETTE)
        merged.update(self.colors)
        return merged

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "EditorConfig":
        payload = dict(data or {})
        colors: dict[str, RGB] = {}
        raw_colors = payload.get("colors")
        if isinstance(raw_colors, Mapping):
            for type_str, raw in raw_colors.items():
                rgb = _as_rgb(raw, fallback=DEFAULT_PALETTE.get(str(type_str), UNRESOLVED_COLOR))
                colors[str(type_str)] = rgb
        return cls(
            colors=colors,
            unresolved_color=_as_rgb(payload.get("unresolved_color"), fallback=UNRESOLVED_COLOR),
            start_node_id=str(payload.get("start_node_id") or "start"),
            node_metas_path=_as_path(payload.get("node_metas_path")),
        )

    def merge(self, overrides: Mapping[str, Any] | None) -> "EditorConfig":
        if not overrides:
            return self
        merged = _deep_update(self.to_dict(), overrides)
        return EditorConfig.from_mapping(merged)

    def to_dict(self) -> dict[str, Any]:
        return {
            "colors": {name: list(rgb) for name, rgb in self.colors.items()},
            "unresolved_color": list(self.unresolved_color),
            "start_node_id": self.start_node_id,
            "node_metas_path": str(self.node_metas_path) if self.node_metas_path else None,
        }


def load_settings(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> EditorConfig:
    """Return an :class:`EditorConfig` from ``config_path`` and overrides.

    Without a path the bundled ``configs/editor/default.yaml`` is used when it
    exists.
    """

    path = _as_path(config_path)
    if path is None and DEFAULT_SETTINGS_PATH.exists():
        path = DEFAULT_SETTINGS_PATH
    data: Mapping[str, Any] | None = None
    if path is not None:
        data = load_config(path)
    return EditorConfig.from_mapping(data).merge(overrides)
