"""Shared fixtures for the flowtypes test-suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from packages.graph import model
from packages.telemetry import metrics

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture(scope="session")
def metas() -> dict[str, model.NodeMeta]:
    return model.load_node_metas(FIXTURES / "node_metas.yaml")


@pytest.fixture()
def registry() -> metrics.MetricsRegistry:
    reg = metrics.get_registry()
    reg.reset()
    return reg
