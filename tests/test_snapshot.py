"""Tests for catalog snapshots and providers."""

import json

import pytest
from sqlflow.catalog import (
    CatalogSnapshot,
    EntryType,
    InMemoryCatalog,
    JsonCatalogProvider,
    SampleCatalog,
    resolve_snapshot
)
from sqlflow.core.errors import InvalidSnapshotError

GROUP_BY_DOCUMENT = {
    "nodes": [
        {"id": 0, "operator": "LocalRelation", "output": ["k", "v"]},
        {"id": 1, "operator": "Aggregate", "output": ["k", "sum(v)"],
         "expressions": ["k", "sum(v)"], "grouping": ["k"], "children": [0]},
        {"id": 2, "operator": "View", "output": ["k", "sum(v)"], "children": [1]},
    ],
    "entries": [{"name": "t", "root": 2, "type": "TEMP_VIEW"}],
}


class TestCatalogSnapshot:
    """Test cases for CatalogSnapshot parsing."""

    def test_from_dict(self):
        snapshot = CatalogSnapshot.from_dict(GROUP_BY_DOCUMENT)

        assert set(snapshot.nodes) == {"0", "1", "2"}
        aggregate = snapshot.get_node("1")
        assert aggregate.children == ("0",)
        assert aggregate.grouping == ("k",)
        assert snapshot.entries[0].entry_type == EntryType.TEMP_VIEW
        assert snapshot.roots() == ["2"]

    def test_matches_sample_catalog(self):
        assert CatalogSnapshot.from_dict(GROUP_BY_DOCUMENT).to_dict() == SampleCatalog("group_by_view").snapshot().to_dict()

    def test_to_dict_round_trip(self):
        snapshot = SampleCatalog("cached_plan").snapshot()
        assert CatalogSnapshot.from_dict(snapshot.to_dict()).to_dict() == snapshot.to_dict()

    def test_snapshot_is_read_only(self):
        snapshot = CatalogSnapshot.from_dict(GROUP_BY_DOCUMENT)
        with pytest.raises(TypeError):
            snapshot.nodes["9"] = snapshot.get_node("0")

    def test_output_derived_from_expressions(self):
        snapshot = CatalogSnapshot.from_dict({
            "nodes": [
                {"id": 0, "operator": "Range", "output": ["id"]},
                {"id": 1, "operator": "Project", "expressions": ["id AS k", "id"], "children": [0]},
            ],
        })
        assert snapshot.get_node("1").output == ("k", "id")

    def test_derived_output_keeps_attribute_ids(self):
        snapshot = CatalogSnapshot.from_dict({
            "nodes": [
                {"id": 0, "operator": "Range", "output": ["id#0"]},
                {"id": 1, "operator": "Project", "expressions": ["id#0L AS k#2L", "id#0L"], "children": [0]},
            ],
        })
        assert snapshot.get_node("1").output == ("k#2", "id#0")

    def test_roots_are_deduplicated(self):
        snapshot = CatalogSnapshot.from_dict({
            "nodes": [{"id": 0, "operator": "LocalRelation", "output": ["a"]}],
            "entries": [{"root": 0, "type": "CACHED"}, {"root": 0, "name": "t"}],
        })
        assert snapshot.roots() == ["0"]
        assert snapshot.entries[1].entry_type == EntryType.VIEW

    @pytest.mark.parametrize("document,message", [
        ([], "must be a JSON object"),
        ({"nodes": {}}, "must be lists"),
        ({"nodes": [{"operator": "Range", "output": ["id"]}]}, "'id'"),
        ({"nodes": [{"id": 0, "output": ["id"]}]}, "'operator'"),
        ({"nodes": [{"id": 0, "operator": "Range"}]}, "'output'"),
        ({"nodes": [{"id": 0, "operator": "Range", "output": "id"}]}, "must be a list"),
        ({"nodes": [{"id": 0, "operator": "Range", "output": ["id"], "rule": "explode"}]}, "unknown lineage rule"),
        ({"nodes": [{"id": 0, "operator": "Range", "output": ["id"]}] * 2}, "Duplicate plan node id 0"),
        ({"entries": [{"root": 0, "type": "MATERIALIZED", "name": "t"}]}, "unsupported type"),
        ({"entries": [{"root": 0, "type": "VIEW"}]}, "'name'"),
        ({"entries": [{"name": "t"}]}, "'root'"),
    ])
    def test_malformed_documents(self, document, message):
        with pytest.raises(InvalidSnapshotError) as exc_info:
            CatalogSnapshot.from_dict(document)
        assert message in str(exc_info.value)


class TestInMemoryCatalog:
    """Test cases for InMemoryCatalog."""

    def test_identities_are_strings(self, empty_catalog):
        empty_catalog.add_node(0, "LocalRelation", ["a"])
        node = empty_catalog.add_node(1, "Filter", ["a"], children=[0])

        assert node.identity == "1"
        assert node.children == ("0",)

    def test_duplicate_identity(self, empty_catalog):
        empty_catalog.add_node(0, "LocalRelation", ["a"])
        with pytest.raises(InvalidSnapshotError):
            empty_catalog.add_node("0", "Range", ["id"])

    def test_named_entry_requires_name(self, empty_catalog):
        with pytest.raises(InvalidSnapshotError):
            empty_catalog.register(0, entry_type=EntryType.TABLE)

    def test_snapshot_is_isolated_from_later_changes(self, empty_catalog):
        empty_catalog.add_node(0, "LocalRelation", ["a"])
        empty_catalog.register(0, "t")
        snapshot = empty_catalog.snapshot()

        empty_catalog.drop("t")
        empty_catalog.add_node(1, "LocalRelation", ["b"])

        assert snapshot.roots() == ["0"]
        assert "1" not in snapshot.nodes
        assert empty_catalog.snapshot().roots() == []

    def test_from_dict(self):
        catalog = InMemoryCatalog.from_dict(GROUP_BY_DOCUMENT)
        assert catalog.snapshot().roots() == ["2"]

    def test_unknown_sample_scenario(self):
        with pytest.raises(ValueError):
            SampleCatalog("nope")


class TestJsonCatalogProvider:
    """Test cases for JsonCatalogProvider."""

    def test_snapshot(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(GROUP_BY_DOCUMENT), encoding="utf-8")

        snapshot = JsonCatalogProvider(path).snapshot()
        assert snapshot.roots() == ["2"]
        assert resolve_snapshot(snapshot) is snapshot

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidSnapshotError) as exc_info:
            JsonCatalogProvider(tmp_path / "missing.json").snapshot()
        assert "Cannot read" in str(exc_info.value)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("{nodes: ", encoding="utf-8")
        with pytest.raises(InvalidSnapshotError) as exc_info:
            JsonCatalogProvider(path).snapshot()
        assert "not valid JSON" in str(exc_info.value)
