"""Tests for node metadata loading and the config reader."""

from __future__ import annotations

import json

import pytest

from packages.graph.model import ExecutionType, node_metas_from_mapping
from packages.utils.config import load_config


def test_fixture_metadata_is_normalised(metas) -> None:
    first = metas["ListFirst"]

    assert first.generic_types == ("T",)
    assert first.execution is None
    assert first.find_port("list", output=False).type == "list<T>"
    assert first.find_port("list", output=True) is None
    assert metas["IntList"].execution is ExecutionType.DATA_ONCE
    assert metas["StartNode"].no_trigger
    assert metas["IntConst"].generic_types == ()


def test_route_ports_and_choices(metas) -> None:
    branch = metas["Branch"]

    assert [port.is_route for port in branch.outputs] == [True, True]
    assert branch.inputs[0].options.choices == ("true", "false")
    assert branch.default_inputs() == {"cond": False}


def test_display_widgets_are_read() -> None:
    metas = node_metas_from_mapping(
        {"Show": {"title": "Show", "display": [{"name": "preview", "type": "image"}]}}
    )

    assert metas["Show"].display[0].type == "image"
    assert metas["Show"].inputs == ()


@pytest.mark.parametrize(
    "payload",
    [
        ["IntConst"],
        {"Bad": "not a mapping"},
        {"Bad": {"inputs": "value"}},
        {"Bad": {"inputs": [{"name": "value"}]}},
        {"Bad": {"execution": "SOMETIMES"}},
    ],
)
def test_invalid_metadata_is_rejected(payload) -> None:
    with pytest.raises(ValueError):
        node_metas_from_mapping(payload)


def test_load_config_reads_json_and_yaml(tmp_path) -> None:
    json_path = tmp_path / "metas.json"
    json_path.write_text(json.dumps({"a": 1}), encoding="utf-8")
    yaml_path = tmp_path / "metas.yaml"
    yaml_path.write_text("a: 1\n", encoding="utf-8")
    empty_path = tmp_path / "empty.yaml"
    empty_path.write_text("", encoding="utf-8")

    assert load_config(json_path) == {"a": 1}
    assert load_config(yaml_path) == {"a": 1}
    assert load_config(empty_path) == {}


def test_load_config_errors(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")

    listing = tmp_path / "list.yaml"
    listing.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(listing)

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(broken)
