"""
Test suite for SplitterService (flowsplit/sync/service.py).

Coverage:
1. Split: tree written, functions/templates extracted, monolith deleted
2. Rebuild: edits restored, monolith assembled in tabsOrder, host reloaded
3. Renamed tabs leave no stale files behind
4. extractFunctionsTemplates / restoreFunctionsTemplates switches
5. monolith_written event handling
6. manual_reload success and failure reporting
"""

import json
import logging
import threading

import pytest
from conftest import FakeHost, VUE, function_node, tab_node, write_json

from flowsplit.config.splitter_config import CONFIG_FILENAME
from flowsplit.errors import FlowSetError
from flowsplit.flowset.manager import FlowSet
from flowsplit.sync.host import FlowsStartedEvent, LocalFlowHost
from flowsplit.sync.service import ReloadResult, SplitterService


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def service(host):
    return SplitterService(host=host, monolith_wait_timeout=0.1)


@pytest.fixture
def split_project(service, user_dir, sample_flows):
    """A user dir that has been split once from sample_flows."""
    write_json(user_dir / "flows.json", sample_flows)
    assert service.on_flows_started(FlowsStartedEvent(flows=sample_flows))
    return user_dir


def read_monolith(user_dir):
    return json.loads((user_dir / "flows.json").read_text(encoding="utf-8"))


# ============================================================================
# Split
# ============================================================================


class TestSplit:
    def test_tree_and_extraction(self, split_project):
        src = split_project / "src"
        assert (src / "tabs" / "dashboard.yaml").is_file()
        assert (src / "tabs" / "dashboard" / "Process_Data.js").read_text(
            encoding="utf-8"
        ) == "return msg;"
        assert (src / "tabs" / "dashboard" / "Gauge.vue").is_file()
        assert (src / "subflows" / "helper" / "Inner.js").is_file()
        assert (src / "config-nodes.yaml").is_file()

    def test_monolith_deleted(self, split_project):
        assert not (split_project / "flows.json").exists()

    def test_config_written(self, split_project):
        data = json.loads((split_project / CONFIG_FILENAME).read_text(encoding="utf-8"))
        assert data["tabsOrder"] == ["t1"]
        assert "monolithFilename" not in data

    def test_split_is_idempotent(self, service, split_project, sample_flows):
        tabs = split_project / "src" / "tabs"
        before = {p.name: p.read_bytes() for p in (tabs / "dashboard").iterdir()}

        assert service.on_flows_started(FlowsStartedEvent(flows=sample_flows))
        after = {p.name: p.read_bytes() for p in (tabs / "dashboard").iterdir()}
        assert before == after

    def test_renamed_tab_cleans_up(self, service, split_project, sample_flows):
        renamed = [dict(n) for n in sample_flows]
        renamed[0]["label"] = "Control Room"

        assert service.on_flows_started(FlowsStartedEvent(flows=renamed))

        tabs = split_project / "src" / "tabs"
        assert sorted(p.name for p in tabs.iterdir()) == ["control-room", "control-room.yaml"]

    def test_deleted_tab_cleans_up(self, service, split_project, sample_flows):
        other = [tab_node("t2", "Other"), function_node("f9", name="Solo", func="x", z="t2")]
        assert service.on_flows_started(FlowsStartedEvent(flows=other))

        tabs = split_project / "src" / "tabs"
        assert sorted(p.name for p in tabs.iterdir()) == ["other", "other.yaml"]
        assert not (split_project / "src" / "subflows").exists() or not any(
            (split_project / "src" / "subflows").iterdir()
        )

    def test_extraction_disabled(self, host, user_dir, sample_flows):
        write_json(user_dir / CONFIG_FILENAME, {"extractFunctionsTemplates": False})
        service = SplitterService(host=host)

        assert service.on_flows_started(FlowsStartedEvent(flows=sample_flows))
        assert (user_dir / "src" / "tabs" / "dashboard.yaml").is_file()
        assert not (user_dir / "src" / "tabs" / "dashboard").exists()

    def test_project_mode(self, host, user_dir, sample_flows):
        write_json(user_dir / ".config.projects.json", {"activeProject": "demo"})
        service = SplitterService(host=host)

        assert service.on_flows_started(FlowsStartedEvent(flows=sample_flows))
        assert (user_dir / "projects" / "demo" / "src" / "tabs" / "dashboard.yaml").is_file()


class TestMonolithWritten:
    def test_waits_for_event(self, service, user_dir, sample_flows):
        write_json(user_dir / "flows.json", sample_flows)
        written = threading.Event()
        written.set()

        assert service.on_flows_started(FlowsStartedEvent(flows=sample_flows, monolith_written=written))
        assert not (user_dir / "flows.json").exists()

    def test_timeout_still_deletes(self, service, user_dir, sample_flows, caplog):
        write_json(user_dir / "flows.json", sample_flows)

        with caplog.at_level(logging.WARNING):
            ok = service.on_flows_started(
                FlowsStartedEvent(flows=sample_flows, monolith_written=threading.Event())
            )

        assert ok
        assert not (user_dir / "flows.json").exists()
        assert "did not report the flows file as written" in caplog.text

    def test_absent_monolith_is_fine(self, service, user_dir, sample_flows):
        assert service.on_flows_started(FlowsStartedEvent(flows=sample_flows))


# ============================================================================
# Rebuild
# ============================================================================


class TestRebuild:
    def test_rebuild_restores_edits(self, service, host, split_project):
        js = split_project / "src" / "tabs" / "dashboard" / "Process_Data.js"
        js.write_text("return msg2;", encoding="utf-8")

        assert service.on_flows_started(FlowsStartedEvent())

        monolith = read_monolith(split_project)
        f1 = next(n for n in monolith if n["id"] == "f1")
        assert f1["func"] == "return msg2;"
        assert f1["name"] == "Process Data"
        assert host.reloads == 1

    def test_rebuild_writes_edit_into_tree(self, service, split_project):
        vue = split_project / "src" / "tabs" / "dashboard" / "Gauge.vue"
        vue.write_text("<template><b>new</b></template>", encoding="utf-8")

        service.on_flows_started(FlowsStartedEvent())

        tree = (split_project / "src" / "tabs" / "dashboard.yaml").read_text(encoding="utf-8")
        assert "<b>new</b>" in tree

    def test_rebuild_order(self, service, user_dir):
        flows = [
            tab_node("t2", "Second"),
            tab_node("t1", "First"),
            function_node("f1", name="A", func="a", z="t1"),
        ]
        service.on_flows_started(FlowsStartedEvent(flows=flows))
        service.on_flows_started(FlowsStartedEvent())

        assert [n["id"] for n in read_monolith(user_dir)] == ["t2", "t1", "f1"]

    def test_rebuild_round_trip(self, service, split_project, sample_flows):
        service.on_flows_started(FlowsStartedEvent())
        monolith = read_monolith(split_project)
        assert sorted(n["id"] for n in monolith) == sorted(n["id"] for n in sample_flows)
        gauge = next(n for n in monolith if n["id"] == "u1")
        assert gauge["format"] == VUE

    def test_rebuild_without_tree_fails(self, service, host, caplog):
        with caplog.at_level(logging.ERROR):
            assert service.on_flows_started(FlowsStartedEvent()) is False
        assert "Cannot build FlowSet from source tree files" in caplog.text
        assert host.reloads == 0

    def test_corrupt_tree_file_aborts(self, service, host, split_project, caplog):
        (split_project / "src" / "tabs" / "bad.yaml").write_text(
            "- id: [unclosed\n", encoding="utf-8"
        )

        with caplog.at_level(logging.ERROR):
            assert service.on_flows_started(FlowsStartedEvent()) is False

        assert "Cannot parse bad.yaml" in caplog.text
        assert host.reloads == 0
        assert not (split_project / "flows.json").exists()

    def test_corrupt_config_nodes_aborts(self, service, split_project):
        (split_project / "src" / "config-nodes.yaml").write_text("{oops: [", encoding="utf-8")
        assert service.on_flows_started(FlowsStartedEvent()) is False

    def test_corrupt_tree_file_reported_by_reload(self, service, split_project):
        (split_project / "src" / "tabs" / "bad.yaml").write_text(
            "- id: [unclosed\n", encoding="utf-8"
        )
        result = service.manual_reload()
        assert not result.success
        assert "Cannot parse bad.yaml" in result.error

    def test_restore_disabled(self, host, split_project):
        config = json.loads((split_project / CONFIG_FILENAME).read_text(encoding="utf-8"))
        config["restoreFunctionsTemplates"] = False
        write_json(split_project / CONFIG_FILENAME, config)
        (split_project / "src" / "tabs" / "dashboard" / "Process_Data.js").write_text(
            "ignored", encoding="utf-8"
        )

        SplitterService(host=host).on_flows_started(FlowsStartedEvent())

        f1 = next(n for n in read_monolith(split_project) if n["id"] == "f1")
        assert f1["func"] == "return msg;"

    def test_host_may_reenter(self, user_dir, sample_flows):
        """A host that re-emits flows-started during reload must not deadlock."""
        holder = {}

        def reemit():
            holder["nested"] = holder["service"].on_flows_started(
                FlowsStartedEvent(flows=read_monolith(user_dir))
            )

        host = FakeHost(user_dir, on_reload=reemit)
        service = SplitterService(host=host, monolith_wait_timeout=0.1)
        holder["service"] = service

        service.on_flows_started(FlowsStartedEvent(flows=sample_flows))
        assert service.on_flows_started(FlowsStartedEvent())
        assert holder["nested"] is True
        assert not (user_dir / "flows.json").exists()


# ============================================================================
# Manual reload
# ============================================================================


class TestManualReload:
    def test_success(self, service, host, split_project):
        result = service.manual_reload()
        assert result.success
        assert result.to_dict() == {
            "success": True,
            "message": "Functions and templates reloaded successfully",
        }
        assert host.reloads == 1
        assert (split_project / "flows.json").is_file()

    def test_failure(self, service):
        result = service.manual_reload()
        assert not result.success
        assert result.to_dict() == {
            "success": False,
            "error": "Cannot build FlowSet from source tree files",
        }

    def test_bad_config_reported(self, service, user_dir):
        (user_dir / CONFIG_FILENAME).write_text("{", encoding="utf-8")
        result = service.manual_reload()
        assert not result.success
        assert "Cannot read splitter config" in result.error


class FailingFlowSetManager:
    """FlowSetManager double whose tree writer always fails."""

    def __init__(self):
        self.calls = []

    def build_tree_from_monolith(self, nodes):
        self.calls.append("build_tree")
        return FlowSet(tabs={n["id"]: [n] for n in nodes if n.get("type") == "tab"})

    def build_monolith_from_tree(self, flow_set, config):
        self.calls.append("build_monolith")
        return []

    def write_tree_files(self, flow_set, config, project_path):
        self.calls.append("write_tree")
        raise FlowSetError("disk full")

    def read_tree_files(self, config, project_path):
        self.calls.append("read_tree")
        return None


class TestInjectedManager:
    def test_manager_failure_aborts_split(self, host, user_dir, sample_flows, caplog):
        write_json(user_dir / "flows.json", sample_flows)
        manager = FailingFlowSetManager()
        service = SplitterService(host=host, flow_set_manager=manager)

        with caplog.at_level(logging.ERROR):
            assert service.on_flows_started(FlowsStartedEvent(flows=sample_flows)) is False

        assert manager.calls == ["build_tree", "write_tree"]
        assert "disk full" in caplog.text
        assert (user_dir / "flows.json").is_file()
        assert not (user_dir / CONFIG_FILENAME).exists()

    def test_manager_without_tree(self, host):
        manager = FailingFlowSetManager()
        result = SplitterService(host=host, flow_set_manager=manager).manual_reload()

        assert not result.success
        assert manager.calls == ["read_tree"]
        assert host.reloads == 0


class TestLocalFlowHost:
    def test_reload_counts(self, tmp_path):
        host = LocalFlowHost(tmp_path)
        host.reload_flows()
        assert host.reload_count == 1
        assert host.flow_file == "flows.json"


class TestReloadResult:
    def test_failure_dict(self):
        assert ReloadResult(success=False, error="boom").to_dict() == {
            "success": False,
            "error": "boom",
        }
