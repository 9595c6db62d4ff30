"""
tests/test_module_graph.py
──────────────────────────
ModuleGraph test suite: construction checks, lookups and catalogue queries.
"""

from __future__ import annotations

import pytest

from curriculum.catalog.loader import default_modules
from curriculum.shared.models import Module
from pathfinder.graph import ModuleGraph, UnknownModuleError


def _make_module(module_id: str, prerequisites=(), tags=()) -> Module:
    return Module(
        id=module_id,
        title=module_id,
        difficulty=1,
        estimated_time=30,
        prerequisites=set(prerequisites),
        tags=set(tags),
    )


class TestModuleGraph:

    @pytest.fixture
    def graph(self) -> ModuleGraph:
        return ModuleGraph([
            _make_module("A", tags=["Visual"]),
            _make_module("B", ["A"], tags=["hands-on"]),
            _make_module("C", ["A"], tags=["visual", "project"]),
            _make_module("D", ["B", "C"]),
        ])

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError):
            ModuleGraph([_make_module("A"), _make_module("A")])

    def test_ids_keep_insertion_order(self, graph):
        assert graph.ids == ("A", "B", "C", "D")
        assert [m.id for m in graph] == ["A", "B", "C", "D"]

    def test_get_unknown(self, graph):
        with pytest.raises(UnknownModuleError) as exc:
            graph.get("Z")
        assert exc.value.module_id == "Z"

    def test_require_reports_first_missing(self, graph):
        graph.require("A", "D")
        with pytest.raises(UnknownModuleError) as exc:
            graph.require("A", "X", "Y")
        assert exc.value.module_id == "X"

    def test_modules_by_tag_is_case_insensitive(self, graph):
        assert [m.id for m in graph.modules_by_tag("visual")] == ["A", "C"]
        assert [m.id for m in graph.modules_by_tag("PROJECT")] == ["C"]
        assert graph.modules_by_tag("missing") == []

    def test_dependents(self, graph):
        assert [m.id for m in graph.dependents("A")] == ["B", "C"]
        assert [m.id for m in graph.dependents("C")] == ["D"]
        assert graph.dependents("D") == []

    def test_dependents_unknown_module(self, graph):
        with pytest.raises(UnknownModuleError):
            graph.dependents("Z")

    def test_default_catalogue_queries(self):
        graph = ModuleGraph(default_modules())
        assert {m.id for m in graph.dependents("data-structures")} == {"oop", "gui-design"}
        assert [m.id for m in graph.modules_by_tag("visual")] == ["gui-design"]

    def test_container_protocol(self, graph):
        assert "B" in graph and "Z" not in graph
        assert len(graph) == 4
        assert repr(graph) == "ModuleGraph(modules=4)"
