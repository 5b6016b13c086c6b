"""Tests for kubeweb.specs.operations."""

from __future__ import annotations

from typing import Any

from kubeweb.specs.operations import extract_operations, iter_operations, merge_parameters


class TestMergeParameters:
    def test_operation_level_overrides_path_level(self) -> None:
        shared = [
            {"name": "namespace", "in": "path", "required": True},
            {"name": "pretty", "in": "query", "description": "path level"},
        ]
        own = [{"name": "pretty", "in": "query", "description": "op level"}]

        merged = merge_parameters(shared, own)

        assert [p["name"] for p in merged] == ["namespace", "pretty"]
        assert merged[1]["description"] == "op level"

    def test_same_name_different_location_kept(self) -> None:
        merged = merge_parameters([{"name": "x", "in": "path"}], [{"name": "x", "in": "query"}])
        assert len(merged) == 2

    def test_unresolved_refs_are_dropped(self) -> None:
        merged = merge_parameters([{"$ref": "#/components/parameters/pretty"}], [])
        assert merged == []


class TestExtractOperations:
    def test_core_fixture(self, core_v1_raw: dict[str, Any]) -> None:
        records = extract_operations(core_v1_raw)

        assert set(records) == {
            "listCoreV1Namespace",
            "listCoreV1NamespacedPod",
            "createCoreV1NamespacedPod",
            "readCoreV1NamespacedPod",
            "deleteCoreV1NamespacedPod",
        }

    def test_path_level_parameters_included(self, core_v1_raw: dict[str, Any]) -> None:
        record = extract_operations(core_v1_raw)["listCoreV1NamespacedPod"]
        names = [p.name for p in record.parameters]
        assert names[:2] == ["namespace", "pretty"]
        assert "labelSelector" in names
        namespace = record.parameters[0]
        assert namespace.required is True
        assert namespace.location == "path"

    def test_description_and_summary(self, core_v1_raw: dict[str, Any]) -> None:
        records = extract_operations(core_v1_raw)
        assert records["readCoreV1NamespacedPod"].description == "read the specified Pod"
        assert records["deleteCoreV1NamespacedPod"].description is None
        assert records["deleteCoreV1NamespacedPod"].summary == "delete a Pod"

    def test_python_names(self, core_v1_raw: dict[str, Any]) -> None:
        record = extract_operations(core_v1_raw)["listCoreV1Namespace"]
        assert {p.python_name for p in record.parameters} >= {"continue_", "label_selector"}

    def test_operations_without_id_are_skipped(self) -> None:
        spec = {"paths": {"/x": {"get": {"responses": {}}, "post": {"operationId": "createX"}}}}
        assert [op["operationId"] for _p, _m, op, _params in iter_operations(spec)] == ["createX"]
