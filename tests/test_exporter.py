"""Unit tests for exporter utilities - uses JSON fixtures, no internet."""

import json

import pytest

from xthreads import ThreadBuilder
from xthreads.core.exporter import (
    flatten_forest,
    load_batch,
    load_json,
    save_json,
    to_dict,
    to_json,
)
from xthreads.exceptions import InputError
from xthreads.models.forest import ThreadForest


@pytest.fixture
def forest(response_path) -> ThreadForest:
    """Forest built from the saved response fixture."""
    return ThreadBuilder().build(load_batch(response_path))


class TestLoadBatch:
    """Test reading saved API responses."""

    def test_locates_all_batches(self, response_path):
        batch = load_batch(response_path)
        assert len(batch.primary) == 8
        assert len(batch.included) == 2
        assert len(batch.replied_to) == 1

    def test_bare_list_is_primary(self, tmp_path):
        path = tmp_path / "tweets.json"
        path.write_text(json.dumps([{"id": "1"}, {"id": "2"}]), encoding="utf-8")
        batch = load_batch(path)
        assert len(batch.primary) == 2
        assert batch.included == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputError):
            load_batch(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InputError):
            load_batch(path)


class TestToJson:
    """Test JSON string conversion."""

    def test_to_json_is_valid_json(self, forest):
        parsed = json.loads(to_json(forest))
        assert "conversations" in parsed
        assert "standalone" in parsed

    def test_to_json_preserves_order(self, forest):
        parsed = json.loads(to_json(forest))
        assert [c["conversation_id"] for c in parsed["conversations"]] == ["300", "100", "399"]


class TestToDict:
    """Test dictionary conversion."""

    def test_nodes_expose_provenance(self, forest):
        d = to_dict(forest)
        root = d["conversations"][0]["threads"][0]
        assert root["provenance"] == "included"
        assert root["children"][0]["provenance"] == "primary"

    def test_timestamps_serialized(self, forest):
        d = to_dict(forest)
        assert isinstance(d["standalone"][0]["created_at"], str)


class TestSaveLoadJson:
    """Test file I/O operations."""

    def test_save_and_load_roundtrip(self, forest, tmp_path):
        filepath = tmp_path / "forest.json"
        save_json(forest, filepath)
        loaded = load_json(filepath)
        assert loaded.post_ids() == forest.post_ids()

    def test_save_creates_parent_dirs(self, forest, tmp_path):
        filepath = tmp_path / "nested" / "dir" / "forest.json"
        save_json(forest, filepath)
        assert filepath.exists()


class TestFlattenForest:
    """Test one-row-per-node flattening."""

    def test_row_per_node(self, forest):
        rows = flatten_forest(forest)
        assert [row["id"] for row in rows] == forest.post_ids()

    def test_depth_and_parent(self, forest):
        rows = {row["id"]: row for row in flatten_forest(forest)}
        assert rows["100"]["depth"] == 0
        assert rows["100"]["parent_id"] is None
        assert rows["102"]["depth"] == 2
        assert rows["102"]["parent_id"] == "101"
        assert rows["300"]["replied_to_id"] == "299"

    def test_standalone_rows_have_no_conversation(self, forest):
        rows = {row["id"]: row for row in flatten_forest(forest)}
        assert rows["500"]["conversation_id"] is None
        assert rows["299"]["conversation_id"] == "300"
