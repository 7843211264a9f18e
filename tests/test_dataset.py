"""
Tests for budget_tree/dataset.py

DatasetSession loading: atomic install, failure isolation, demo fallback,
BOM handling and last-load-wins.
"""
import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from budget_tree.dataset import (
    DEMO_DATASET,
    DEMO_SOURCE,
    DatasetSession,
    build_dataset,
    parse_json_text,
)
from budget_tree.errors import DatasetLoadError
from conftest import DEFAULT_DATASET, make_deep_raw, make_sample_raw


def nested_json(depth: int) -> str:
    """A well-formed document nested *depth* levels, past the JSON parser's limit."""
    return '{"name": "a", "children": [' * depth + '{"name": "b"}' + "]}" * depth


# ── parse_json_text ───────────────────────────────────────────────────────────

class TestParseJsonText:
    def test_plain(self):
        assert parse_json_text('{"name": "x"}', "t") == {"name": "x"}

    def test_bom_bytes(self):
        data = "\ufeff{\"name\": \"งบ\"}".encode("utf-8")
        assert parse_json_text(data, "t") == {"name": "งบ"}

    def test_bom_str(self):
        assert parse_json_text("\ufeff{}", "t") == {}

    def test_invalid_json(self):
        with pytest.raises(DatasetLoadError, match="invalid JSON") as exc_info:
            parse_json_text("{not json", "upload")
        assert exc_info.value.source == "upload"

    def test_top_level_array_rejected(self):
        with pytest.raises(DatasetLoadError, match="JSON object"):
            parse_json_text("[1, 2]", "upload")

    def test_nesting_too_deep(self):
        with pytest.raises(DatasetLoadError, match="nested too deeply"):
            parse_json_text(nested_json(100_000), "deep.json")

    def test_bad_utf8(self):
        with pytest.raises(DatasetLoadError, match="UTF-8"):
            parse_json_text(b"\xff\xfe{", "upload")


def test_build_dataset_does_not_install():
    ds = build_dataset(make_sample_raw(), "tests")
    assert ds.name == "National Budget"
    assert len(ds.index) == 8
    assert ds.navigator.root is ds.root


def test_summary(session):
    info = session.dataset.summary()
    assert info["name"] == "National Budget"
    assert info["source"] == "tests"
    assert info["is_demo"] is False
    assert info["meta"] == {"fiscalYear": "2025", "source": "tests"}
    assert info["total"] == 1000
    assert info["node_count"] == 8
    assert info["leaf_count"] == 5
    assert info["top_level_count"] == 3


# ── DatasetSession ────────────────────────────────────────────────────────────

class TestDatasetSession:
    def test_empty_session(self):
        s = DatasetSession()
        assert s.is_loaded is False
        with pytest.raises(LookupError):
            s.dataset

    def test_load_text(self):
        s = DatasetSession()
        ds = s.load_text(json.dumps(make_sample_raw()), source="upload")
        assert s.dataset is ds
        assert ds.source == "upload"
        assert s.navigator.current_path == ("National Budget",)

    def test_load_file(self, tmp_path):
        path = tmp_path / "budget.json"
        path.write_text(json.dumps({"name": "From file", "value": 3}), encoding="utf-8")
        s = DatasetSession()
        ds = s.load_file(path)
        assert ds.name == "From file"
        assert ds.source == str(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(DatasetLoadError):
            DatasetSession().load_file(tmp_path / "missing.json")

    def test_failed_load_keeps_previous_dataset_and_position(self, session):
        previous = session.dataset
        session.navigator.drill_to_path(["Ministry of Finance"])
        with pytest.raises(DatasetLoadError):
            session.load_text("{broken", source="upload")
        assert session.dataset is previous
        assert session.navigator.depth == 1

    def test_malformed_tree_wrapped(self, session):
        previous = session.dataset
        raw = {"name": "loop", "children": []}
        raw["children"].append(raw)
        with pytest.raises(DatasetLoadError, match="references itself"):
            session.load_data(raw)
        assert session.dataset is previous

    def test_depth_cap_from_session(self):
        s = DatasetSession(max_depth=5)
        with pytest.raises(DatasetLoadError, match="deeper than 5"):
            s.load_data(make_deep_raw(6))
        assert s.is_loaded is False

    def test_new_load_resets_navigation(self, session):
        session.navigator.drill_to_path(["Ministry of Finance"])
        session.load_data(make_sample_raw(), source="again")
        assert session.navigator.depth == 0

    def test_loads_get_increasing_generations(self, session):
        first = session.dataset.generation
        second = session.load_data(make_sample_raw()).generation
        assert second > first

    def test_stale_load_is_discarded(self):
        s = DatasetSession()
        newer = build_dataset({"name": "newer"}, "b", generation=5)
        older = build_dataset({"name": "older"}, "a", generation=3)
        assert s._install(newer) is True
        assert s._install(older) is False
        assert s.dataset.name == "newer"

    def test_superseded_load_is_flagged(self):
        s = DatasetSession()
        stale = s._next_generation()
        s.load_data({"name": "newer"}, source="b")
        ds = s._build_and_install({"name": "older"}, "a", stale)
        assert ds.installed is False
        assert s.dataset.name == "newer"
        assert s.dataset.installed is True

    def test_deeply_nested_text_keeps_previous_dataset(self, session):
        with pytest.raises(DatasetLoadError, match="nested too deeply"):
            session.load_text(nested_json(100_000))
        assert session.dataset.name == "National Budget"

    def test_input_tree_not_shared(self):
        raw = make_sample_raw()
        s = DatasetSession()
        s.load_data(raw)
        raw["children"].clear()
        assert len(s.root.children) == 3


class TestDefaultAndDemo:
    def test_load_demo(self):
        s = DatasetSession()
        ds = s.load_demo()
        assert ds.is_demo is True
        assert ds.source == DEMO_SOURCE
        assert ds.name == DEMO_DATASET["name"]
        assert [c.name for c in ds.root.children][:2] == [
            "Ministry of Finance", "Ministry of Education"]

    def test_demo_tree_not_mutated_by_session(self):
        s = DatasetSession()
        s.load_demo()
        s.root.children.clear()
        assert len(DEMO_DATASET["children"]) == 4

    def test_default_file(self):
        s = DatasetSession()
        ds = s.load_default(DEFAULT_DATASET)
        assert ds.is_demo is False
        assert ds.root.meta["fiscalYear"] == "2025"
        assert ds.warnings == []

    def test_missing_default_falls_back(self, tmp_path):
        s = DatasetSession()
        ds = s.load_default(tmp_path / "missing.json")
        assert ds.is_demo is True
        assert len(ds.warnings) == 1
        assert "missing.json" in ds.warnings[0]

    def test_corrupt_default_falls_back(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{oops", encoding="utf-8")
        ds = DatasetSession().load_default(path)
        assert ds.is_demo is True
        assert "invalid JSON" in ds.warnings[0]

    def test_deeply_nested_default_falls_back(self, tmp_path):
        path = tmp_path / "deep.json"
        path.write_text(nested_json(100_000), encoding="utf-8")
        ds = DatasetSession().load_default(path)
        assert ds.is_demo is True
        assert "nested too deeply" in ds.warnings[0]

    def test_none_default_is_demo(self):
        ds = DatasetSession().load_default(None)
        assert ds.is_demo is True
        assert ds.warnings == []

    def test_default_dataset_reconciles(self):
        from budget_tree.aggregator import sum_children, total_for

        ds = DatasetSession().load_default(DEFAULT_DATASET)
        finance = ds.root.find_child("Ministry of Finance")
        assert total_for(finance) == pytest.approx(sum_children(finance))
