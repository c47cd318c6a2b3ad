"""Tests for inheritance queries and the hierarchy tools."""

import pytest

from decompiler_mcp.context import AssemblyContext
from decompiler_mcp.hierarchy import (
    all_interfaces,
    base_class_chain,
    base_definition,
    derived_types,
    find_overrides,
    implementors,
    interface_method_implementations,
    same_signature,
)
from decompiler_mcp.model import Accessibility, Symbol, SymbolKind, TypeKind, TypeRef, build_graph
from decompiler_mcp.tools.type_hierarchy import (
    find_base_types,
    find_derived_types,
    get_implementations,
    get_overrides,
)

from conftest import INT, method


DOUBLE = TypeRef.named("System.Double")
SHAPE = TypeRef.named("Game.Shapes.Shape")
ISHAPE = TypeRef.named("Game.Shapes.IShape")
CIRCLE = TypeRef.named("Game.Shapes.Circle")


def shape_type(name, kind=TypeKind.CLASS, bases=(), members=(), **kwargs):
    return Symbol(
        kind=SymbolKind.TYPE,
        name=name,
        namespace="Game.Shapes",
        type_kind=kind,
        base_types=tuple(bases),
        members=list(members),
        **kwargs,
    )


def make_shapes():
    return [
        shape_type("IShape", TypeKind.INTERFACE, members=[
            method("Area", returns=DOUBLE, is_abstract=True, is_virtual=True),
        ]),
        shape_type("Shape", bases=[ISHAPE], is_abstract=True, members=[
            method("Area", returns=DOUBLE, is_abstract=True, is_virtual=True),
            method("Scale", [("factor", INT, "")], is_virtual=True),
        ]),
        shape_type("Circle", bases=[SHAPE], members=[
            method("Area", returns=DOUBLE, is_virtual=True, is_override=True),
            method("Scale", [("factor", INT, "")], is_virtual=True, is_override=True),
        ]),
        shape_type("Ring", bases=[CIRCLE], members=[
            method("Area", returns=DOUBLE, is_virtual=True, is_override=True),
        ]),
        shape_type("Square", bases=[SHAPE, TypeRef.named("System.IComparable")], members=[
            method("Area", returns=DOUBLE, is_virtual=True, is_override=True),
            method("Scale", [("factor", DOUBLE, "")]),
        ]),
        shape_type("Point", TypeKind.STRUCT, bases=[ISHAPE], members=[
            method("Area", returns=DOUBLE),
        ]),
        shape_type("Explicit", bases=[ISHAPE], members=[
            method("Game.Shapes.IShape.Area", returns=DOUBLE, accessibility=Accessibility.PRIVATE),
        ]),
        shape_type("Unrelated", bases=[TypeRef.named("System.Object")]),
    ]


@pytest.fixture
def shapes():
    return build_graph("Shapes", make_shapes())


@pytest.fixture
def shapes_context(shapes):
    context = AssemblyContext()
    context.load(shapes, path="Shapes")
    return context


def ids(result):
    return [item["canonical_id"] for item in result["data"]["items"]]


def test_base_class_chain(shapes):
    """Test walking base classes up to the first external type."""
    ring = shapes.find_type("Game.Shapes.Ring")
    assert [ref.full_name for ref in base_class_chain(shapes, ring)] == [
        "Game.Shapes.Circle", "Game.Shapes.Shape",
    ]
    assert base_class_chain(shapes, shapes.find_type("Game.Shapes.Unrelated")) == []


def test_interface_only_base_list(shapes):
    """Test that a class listing only an interface has no base class."""
    shape = shapes.find_type("Game.Shapes.Shape")
    assert base_class_chain(shapes, shape) == []
    assert [ref.full_name for ref in all_interfaces(shapes, shape)] == ["Game.Shapes.IShape"]


def test_all_interfaces_includes_inherited_and_external(shapes):
    """Test that interfaces come from the type and its base classes."""
    square = shapes.find_type("Game.Shapes.Square")
    assert [ref.full_name for ref in all_interfaces(shapes, square)] == [
        "System.IComparable", "Game.Shapes.IShape",
    ]


def test_derived_types(shapes):
    """Test direct and transitive subclasses."""
    shape = shapes.find_type("Game.Shapes.Shape")
    assert [t.name for t in derived_types(shapes, shape)] == ["Circle", "Ring", "Square"]
    assert [t.name for t in derived_types(shapes, shape, transitive=False)] == ["Circle", "Square"]


def test_implementors(shapes):
    """Test that implementors include types inheriting the interface."""
    ishape = shapes.find_type("Game.Shapes.IShape")
    assert [t.name for t in implementors(shapes, ishape)] == [
        "Circle", "Explicit", "Point", "Ring", "Shape", "Square",
    ]


def test_interface_method_implementations(shapes):
    """Test implicit and explicit implementations of an interface method."""
    area = shapes.get("M:Game.Shapes.IShape.Area")
    found = interface_method_implementations(shapes, area)
    assert {m.declaring_type.name for m in found} == {
        "Circle", "Explicit", "Point", "Ring", "Shape", "Square",
    }


def test_overrides_match_parameter_types(shapes):
    """Test that a same-named method with other parameter types is not an override."""
    scale = shapes.get("M:Game.Shapes.Shape.Scale(System.Int32)")
    assert [m.declaring_type.name for m in find_overrides(shapes, scale)] == ["Circle"]
    assert not same_signature(scale, shapes.get("M:Game.Shapes.Square.Scale(System.Double)"))


def test_base_definition_walks_to_the_root(shapes):
    """Test that an override two levels down reports the original virtual method."""
    ring_area = shapes.get("M:Game.Shapes.Ring.Area")
    assert base_definition(shapes, ring_area) is shapes.get("M:Game.Shapes.Shape.Area")
    assert base_definition(shapes, shapes.get("M:Game.Shapes.Shape.Area")) is None


def test_find_base_types_tool(shapes_context):
    """Test the base types tool with in-assembly and external entries."""
    result = find_base_types(shapes_context, "T:Game.Shapes.Square")
    data = result["data"]

    assert [b["canonical_id"] for b in data["bases"]] == ["T:Game.Shapes.Shape"]
    assert data["interfaces"][0] == {"full_name": "System.IComparable", "name": "IComparable", "external": True}
    assert data["interfaces"][1]["canonical_id"] == "T:Game.Shapes.IShape"

    without = find_base_types(shapes_context, "T:Game.Shapes.Square", include_interfaces=False)
    assert "interfaces" not in without["data"]


def test_find_derived_types_tool(shapes_context):
    """Test paging through derived types."""
    result = find_derived_types(shapes_context, "T:Game.Shapes.Shape", limit=2)
    assert ids(result) == ["T:Game.Shapes.Circle", "T:Game.Shapes.Ring"]
    assert result["data"]["has_more"] is True

    direct = find_derived_types(shapes_context, "T:Game.Shapes.Shape", transitive=False)
    assert ids(direct) == ["T:Game.Shapes.Circle", "T:Game.Shapes.Square"]

    wrong = find_derived_types(shapes_context, "M:Game.Shapes.Shape.Area")
    assert wrong["error_type"] == "WrongSymbolKind"


def test_get_implementations_tool(shapes_context):
    """Test implementations of an interface and of an interface method."""
    types = get_implementations(shapes_context, "T:Game.Shapes.IShape")
    assert "T:Game.Shapes.Point" in ids(types)
    assert "T:Game.Shapes.IShape" not in ids(types)

    methods = get_implementations(shapes_context, "M:Game.Shapes.IShape.Area")
    assert "M:Game.Shapes.Explicit.Game#Shapes#IShape#Area" in ids(methods)
    assert "M:Game.Shapes.Point.Area" in ids(methods)


def test_get_implementations_rejects_classes(shapes_context):
    """Test that non-interface symbols are reported as the wrong kind."""
    assert get_implementations(shapes_context, "T:Game.Shapes.Shape")["error_type"] == "WrongSymbolKind"
    assert get_implementations(shapes_context, "M:Game.Shapes.Shape.Area")["error_type"] == "WrongSymbolKind"


def test_get_overrides_tool(shapes_context):
    """Test base definition and overrides of virtual and overriding methods."""
    root = get_overrides(shapes_context, "M:Game.Shapes.Shape.Area")["data"]
    assert root["base_definition"]["canonical_id"] == "M:Game.Shapes.Shape.Area"
    assert [m["declaring_type"] for m in root["overrides"]] == [
        "Game.Shapes.Circle", "Game.Shapes.Ring", "Game.Shapes.Square",
    ]

    leaf = get_overrides(shapes_context, "M:Game.Shapes.Ring.Area")["data"]
    assert leaf["base_definition"]["canonical_id"] == "M:Game.Shapes.Shape.Area"
    assert leaf["count"] == 0

    plain = get_overrides(shapes_context, "M:Game.Shapes.Point.Area")["data"]
    assert plain["base_definition"] is None
