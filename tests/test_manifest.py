"""
Tests for the extraction manifest (flowsplit/extract/manifest.py).

Coverage:
1. Entry serialization in the camelCase on-disk form
2. Legacy isVue/isFun keys on read
3. Expected files follow the has* flags exactly
4. Store read/write/remove and malformed-file handling
"""

import json
import logging

import pytest

from flowsplit.errors import ManifestError
from flowsplit.extract.manifest import MANIFEST_FILENAME, ManifestEntry, ManifestStore


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def script_entry():
    return ManifestEntry(
        node_id="n1",
        name="Process Data",
        sanitized_name="Process_Data",
        file_name="Process_Data",
        is_script=True,
        has_code=True,
        has_info=True,
    )


@pytest.fixture
def store():
    return ManifestStore()


# ============================================================================
# ManifestEntry
# ============================================================================


class TestManifestEntry:
    def test_to_dict_uses_camel_case(self, script_entry):
        data = script_entry.to_dict()
        assert data["nodeId"] == "n1"
        assert data["fileName"] == "Process_Data"
        assert data["isScript"] is True
        assert data["isMarkup"] is False
        assert data["hasInitialize"] is False

    def test_from_dict_round_trip(self, script_entry):
        assert ManifestEntry.from_dict(script_entry.to_dict()) == script_entry

    def test_legacy_keys(self):
        entry = ManifestEntry.from_dict(
            {"nodeId": "u1", "name": "Gauge", "fileName": "Gauge", "isVue": True, "hasCode": True}
        )
        assert entry.is_markup is True
        assert entry.code_file == "Gauge.vue"

    def test_canonical_key_wins_over_legacy(self):
        entry = ManifestEntry.from_dict(
            {"fileName": "F", "isFun": False, "isScript": True, "hasCode": True}
        )
        assert entry.is_script is True

    def test_missing_file_name(self):
        with pytest.raises(ValueError):
            ManifestEntry.from_dict({"nodeId": "n1", "name": "x"})

    def test_expected_files_follow_flags(self, script_entry):
        assert script_entry.expected_files() == ["Process_Data.js", "Process_Data.info.md"]

    def test_expected_files_all_flags(self):
        entry = ManifestEntry(
            node_id="n1",
            name="F",
            sanitized_name="F",
            file_name="F",
            is_script=True,
            has_code=True,
            has_initialize=True,
            has_finalize=True,
            has_info=True,
        )
        assert entry.expected_files() == ["F.js", "F.initialize.js", "F.finalize.js", "F.info.md"]


# ============================================================================
# ManifestStore
# ============================================================================


class TestManifestStore:
    def test_write_then_read(self, tmp_path, store, script_entry):
        path = store.write(tmp_path, {"n1": script_entry})
        assert path.name == MANIFEST_FILENAME
        assert store.read(tmp_path) == {"n1": script_entry}

    def test_written_file_is_pretty_json(self, tmp_path, store, script_entry):
        store.write(tmp_path, {"n1": script_entry})
        text = (tmp_path / MANIFEST_FILENAME).read_text(encoding="utf-8")
        assert text.startswith("{\n  \"n1\"")
        assert text.endswith("\n")

    def test_read_absent(self, tmp_path, store):
        assert store.read(tmp_path) is None

    def test_read_malformed_json(self, tmp_path, store):
        (tmp_path / MANIFEST_FILENAME).write_text("{not json", encoding="utf-8")
        with pytest.raises(ManifestError):
            store.read(tmp_path)

    def test_read_wrong_shape(self, tmp_path, store):
        (tmp_path / MANIFEST_FILENAME).write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ManifestError, match="expected object"):
            store.read(tmp_path)

    def test_read_entry_without_file_name(self, tmp_path, store):
        (tmp_path / MANIFEST_FILENAME).write_text(
            json.dumps({"n1": {"nodeId": "n1"}}), encoding="utf-8"
        )
        with pytest.raises(ManifestError, match="n1"):
            store.read(tmp_path)

    def test_node_id_defaults_to_key(self, tmp_path, store):
        (tmp_path / MANIFEST_FILENAME).write_text(
            json.dumps({"n9": {"fileName": "X", "isFun": True, "hasCode": True}}),
            encoding="utf-8",
        )
        assert store.read(tmp_path)["n9"].node_id == "n9"

    def test_load_logs_and_returns_none(self, tmp_path, store, caplog):
        (tmp_path / MANIFEST_FILENAME).write_text("garbage", encoding="utf-8")
        with caplog.at_level(logging.WARNING):
            assert store.load(tmp_path, "dashboard") is None
        assert "Could not read manifest" in caplog.text
        assert "dashboard" in caplog.text

    def test_remove(self, tmp_path, store, script_entry):
        store.write(tmp_path, {"n1": script_entry})
        assert store.remove(tmp_path) is True
        assert not (tmp_path / MANIFEST_FILENAME).exists()
        assert store.remove(tmp_path) is False
