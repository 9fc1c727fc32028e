"""
Shared fixtures for flowsplit tests.

Node factories build the minimal records the runtime would hand us; the
project fixture lays out a user directory in non-project mode.
"""

import json
from pathlib import Path

import pytest


# ============================================================================
# Node factories
# ============================================================================


def function_node(node_id, name="", func="", initialize="", finalize="", info="", z="t1"):
    return {
        "id": node_id,
        "type": "function",
        "z": z,
        "name": name,
        "func": func,
        "initialize": initialize,
        "finalize": finalize,
        "info": info,
        "outputs": 1,
        "wires": [[]],
    }


def template_node(node_id, name="", fmt="", info="", z="t1"):
    return {
        "id": node_id,
        "type": "ui-template",
        "z": z,
        "name": name,
        "format": fmt,
        "info": info,
        "wires": [[]],
    }


def tab_node(tab_id, label):
    return {"id": tab_id, "type": "tab", "label": label, "disabled": False, "info": ""}


def subflow_node(subflow_id, name):
    return {"id": subflow_id, "type": "subflow", "name": name, "in": [], "out": []}


VUE = "<template>\n  <div>{{ msg.payload }}</div>\n</template>\n"


# ============================================================================
# Fake host
# ============================================================================


class FakeHost:
    """FlowHost stand-in recording reloads."""

    def __init__(self, user_dir, flow_file="flows.json", on_reload=None):
        self.user_dir = Path(user_dir)
        self.flow_file = flow_file
        self.reloads = 0
        self._on_reload = on_reload

    def reload_flows(self):
        self.reloads += 1
        if self._on_reload is not None:
            self._on_reload()


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Make sure env overrides from the outer shell never leak into tests."""
    for name in ("FLOWSPLIT_FILE_FORMAT", "FLOWSPLIT_DESTINATION_FOLDER", "FLOWSPLIT_EXTRACT"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def tabs_dir(tmp_path):
    """An entity category directory for engine-level tests."""
    path = tmp_path / "src" / "tabs"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def user_dir(tmp_path):
    path = tmp_path / "userdir"
    path.mkdir()
    return path


@pytest.fixture
def host(user_dir):
    return FakeHost(user_dir)


@pytest.fixture
def sample_flows():
    """A monolith with one tab, one subflow and a config node."""
    return [
        tab_node("t1", "Dashboard"),
        function_node("f1", name="Process Data", func="return msg;", z="t1"),
        template_node("u1", name="Gauge", fmt=VUE, z="t1"),
        subflow_node("s1", "Helper"),
        function_node("f2", name="Inner", func="msg.x = 1;\nreturn msg;", z="s1"),
        {"id": "c1", "type": "mqtt-broker", "broker": "localhost"},
    ]


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
