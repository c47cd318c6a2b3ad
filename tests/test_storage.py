"""Tests for graph serialization and the graph store."""

import json

import pytest

from decompiler_mcp.errors import AssemblyLoadError
from decompiler_mcp.loader import load_path
from decompiler_mcp.model import Symbol, SymbolKind, TypeKind, TypeRef, build_graph, make_symbol_id
from decompiler_mcp.storage import GraphStore, graph_from_dict, graph_to_dict

from conftest import WIDGET_SOURCE, method


def test_dict_round_trip_keeps_ids(graph):
    """Test that a dumped graph rebuilds with the same ids."""
    data = graph_to_dict(graph)
    rebuilt = graph_from_dict(json.loads(json.dumps(data)))

    assert set(rebuilt.index) == set(graph.index)
    assert rebuilt.name == "Game"


def test_dict_round_trip_keeps_details(graph):
    """Test flags, spans and generic parameters survive a dump."""
    rebuilt = graph_from_dict(graph_to_dict(graph))

    create = rebuilt.get("M:Game.Core.Widget.Create")
    assert create.is_static

    compute = rebuilt.get("M:Game.Core.Widget.Compute(System.String)")
    original = graph.get("M:Game.Core.Widget.Compute(System.String)")
    assert compute.source == original.source

    count = rebuilt.get("F:Game.Core.Widget.count")
    assert count.accessibility.value == "Private"

    vector = rebuilt.find_type("Game.Core.Vector")
    assert vector.type_kind.value == "struct"


def test_dump_format(graph):
    """Test the dump header and member kind names."""
    data = graph_to_dict(graph)

    assert data["format"] == "decompiler-mcp/graph"
    assert data["version"] == 1
    widget = next(t for t in data["types"] if t["name"] == "Widget")
    assert {m["kind"] for m in widget["members"]} == {"method", "field", "property", "event"}
    assert widget["nested_types"][0]["name"] == "Part"


@pytest.mark.parametrize("data", [
    {"format": "other", "version": 1, "types": []},
    {"format": "decompiler-mcp/graph", "version": 99, "types": []},
    {"format": "decompiler-mcp/graph", "version": 1},
    {"format": "decompiler-mcp/graph", "version": 1, "types": [{"name": "X", "kind": "blob"}]},
])
def test_bad_dumps_rejected(data):
    """Test that malformed dumps raise AssemblyLoadError."""
    with pytest.raises(AssemblyLoadError):
        graph_from_dict(data)


def test_store_save_and_load(tmp_path, graph):
    """Test saving and loading a graph with its sources."""
    store = GraphStore(base_path=str(tmp_path))
    store.save(graph, {"Widget.cs": WIDGET_SOURCE}, origin="/games/Game")

    loaded = store.load("Game")
    assert loaded is not None
    rebuilt, sources = loaded

    assert set(rebuilt.index) == set(graph.index)
    assert sources == {"Widget.cs": WIDGET_SOURCE}


def test_store_load_missing(tmp_path):
    """Test loading an assembly that was never saved."""
    assert GraphStore(base_path=str(tmp_path)).load("Nope") is None


def test_store_list_and_delete(tmp_path, graph):
    """Test listing and deleting saved assemblies."""
    store = GraphStore(base_path=str(tmp_path))
    store.save(graph, {"Widget.cs": WIDGET_SOURCE}, origin="/games/Game")

    assemblies = store.list_assemblies()
    assert len(assemblies) == 1
    assert assemblies[0]["name"] == "Game"
    assert assemblies[0]["origin"] == "/games/Game"
    assert assemblies[0]["type_count"] == 4
    assert assemblies[0]["file_count"] == 1

    assert store.delete("Game") is True
    assert store.delete("Game") is False
    assert store.list_assemblies() == []


def test_store_ignores_foreign_json(tmp_path):
    """Test that unrelated JSON files are not listed."""
    (tmp_path / "notes.json").write_text('{"hello": "world"}')
    (tmp_path / "broken.json").write_text("{")
    assert GraphStore(base_path=str(tmp_path)).list_assemblies() == []


def test_save_replaces_previous(tmp_path, graph):
    """Test that saving again drops stale source files."""
    store = GraphStore(base_path=str(tmp_path))
    store.save(graph, {"Old.cs": "class Old { }"})
    store.save(graph, {"Widget.cs": WIDGET_SOURCE})

    _, sources = store.load("Game")
    assert list(sources) == ["Widget.cs"]
    assert not (tmp_path / "Game" / "Old.cs").exists()


# Loader

def test_load_path_json_dump(tmp_path, graph):
    """Test loading a JSON symbol dump."""
    dump = tmp_path / "game.json"
    dump.write_text(json.dumps(graph_to_dict(graph)))

    result = load_path(str(dump))
    assert result.from_store is False
    assert "T:Game.Core.Widget" in result.graph.index


def test_load_path_falls_back_to_store(tmp_path, graph):
    """Test that a stored name loads when no such path exists."""
    store = GraphStore(base_path=str(tmp_path / "store"))
    store.save(graph, {"Widget.cs": WIDGET_SOURCE})

    result = load_path("Game", store=store)
    assert result.from_store is True
    assert result.sources == {"Widget.cs": WIDGET_SOURCE}


@pytest.mark.parametrize("name", ["Game.dll", "notes.txt"])
def test_load_path_rejects_unsupported(tmp_path, name):
    """Test binary and unknown inputs."""
    target = tmp_path / name
    target.write_bytes(b"MZ")
    with pytest.raises(AssemblyLoadError):
        load_path(str(target))


def test_load_path_missing(tmp_path):
    """Test a missing path without a store entry."""
    with pytest.raises(AssemblyLoadError):
        load_path(str(tmp_path / "missing"), store=GraphStore(base_path=str(tmp_path)))
    with pytest.raises(AssemblyLoadError):
        load_path("   ")


def test_member_ids_use_make_symbol_id(graph):
    """Test that every rebuilt symbol reports its index key."""
    rebuilt = graph_from_dict(graph_to_dict(graph))
    assert all(make_symbol_id(s) == key for key, s in rebuilt.index.items())


def test_dict_round_trip_keeps_attributes_and_overrides():
    """Test that attributes and override flags survive a dump."""
    base = Symbol(kind=SymbolKind.TYPE, name="Shape", namespace="Game.Shapes",
                  type_kind=TypeKind.CLASS, attributes=("Serializable",),
                  members=[method("Area", is_virtual=True, attributes=('Obsolete("old")',))])
    derived = Symbol(kind=SymbolKind.TYPE, name="Circle", namespace="Game.Shapes",
                     type_kind=TypeKind.CLASS, base_types=(TypeRef.named("Game.Shapes.Shape"),),
                     members=[method("Area", is_virtual=True, is_override=True)])
    rebuilt = graph_from_dict(json.loads(json.dumps(graph_to_dict(build_graph("Shapes", [base, derived])))))

    assert rebuilt.find_type("Game.Shapes.Shape").attributes == ("Serializable",)
    assert rebuilt.get("M:Game.Shapes.Shape.Area").attributes == ('Obsolete("old")',)
    assert not rebuilt.get("M:Game.Shapes.Shape.Area").is_override
    assert rebuilt.get("M:Game.Shapes.Circle.Area").is_override
