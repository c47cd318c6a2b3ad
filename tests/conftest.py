"""Shared fixtures: a small hand-built assembly graph."""

import pytest

from decompiler_mcp.context import AssemblyContext
from decompiler_mcp.model import (
    Accessibility,
    Parameter,
    SourceSpan,
    Symbol,
    SymbolKind,
    TypeKind,
    TypeRef,
    build_graph,
)
from decompiler_mcp.resolver import SymbolResolver


INT = TypeRef.named("System.Int32")
FLOAT = TypeRef.named("System.Single")
STRING = TypeRef.named("System.String")
BOOL = TypeRef.named("System.Boolean")
VOID = TypeRef.named("System.Void")

WIDGET_SOURCE = """namespace Game.Core
{
    public class Widget
    {
        public int Compute(string name)
        {
            return name.Length;
        }
    }
}
"""

COMPUTE_START = WIDGET_SOURCE.index("public int Compute")
COMPUTE_END = WIDGET_SOURCE.index("}\n    }\n}") + 1


def method(name, params=(), returns=VOID, **kwargs):
    return Symbol(
        kind=SymbolKind.METHOD,
        name=name,
        parameters=tuple(Parameter(n, t, m) for n, t, m in params),
        return_type=returns,
        **kwargs,
    )


def make_types():
    """Fresh, unwired symbols for one graph."""
    widget_ref = TypeRef.named("Game.Core.Widget")
    vector_ref = TypeRef.named("Game.Core.Vector")
    t_param = TypeRef.generic_parameter("T", 0)
    u_param = TypeRef.generic_parameter("U", 0, method_owned=True)

    part = Symbol(
        kind=SymbolKind.TYPE,
        name="Part",
        type_kind=TypeKind.CLASS,
        members=[method("Attach", [("owner", widget_ref, "")])],
    )
    widget = Symbol(
        kind=SymbolKind.TYPE,
        name="Widget",
        namespace="Game.Core",
        type_kind=TypeKind.CLASS,
        members=[
            method(".ctor", [("size", INT, "")]),
            method(
                "Compute", [("name", STRING, "")], INT,
                source=SourceSpan("Widget.cs", 5, 8, COMPUTE_START, COMPUTE_END - COMPUTE_START),
            ),
            method("Reset"),
            method("Scale", [("factor", INT, "")]),
            method("Scale", [("factor", FLOAT, "")]),
            method("Create", returns=widget_ref, is_static=True),
            method("TryGet", [("key", STRING, ""), ("value", INT, "out")], BOOL),
            method("Apply", [("", INT, ""), ("object", STRING, "")]),
            Symbol(kind=SymbolKind.FIELD, name="count", return_type=INT,
                   accessibility=Accessibility.PRIVATE),
            Symbol(kind=SymbolKind.PROPERTY, name="Name", return_type=STRING),
            Symbol(kind=SymbolKind.PROPERTY, name="Item", return_type=STRING,
                   parameters=(Parameter("index", INT),)),
            Symbol(kind=SymbolKind.EVENT, name="Changed",
                   return_type=TypeRef.named("System.EventHandler")),
        ],
        nested_types=[part],
        source=SourceSpan("Widget.cs", 3, 9, WIDGET_SOURCE.index("public class"),
                          COMPUTE_END + 6 - WIDGET_SOURCE.index("public class")),
    )
    vector = Symbol(
        kind=SymbolKind.TYPE,
        name="Vector",
        namespace="Game.Core",
        type_kind=TypeKind.STRUCT,
        members=[
            method("Length", returns=FLOAT),
            method("op_Addition", [("a", vector_ref, ""), ("b", vector_ref, "")], vector_ref,
                   is_static=True),
        ],
    )
    box = Symbol(
        kind=SymbolKind.TYPE,
        name="Box`1",
        namespace="Game.Core",
        type_kind=TypeKind.CLASS,
        type_parameters=("T",),
        members=[
            method("Get", returns=t_param),
            method("Map", [("value", u_param, ""), ("items", TypeRef.array(t_param), "")], u_param,
                   type_parameters=("U",)),
            Symbol(kind=SymbolKind.PROPERTY, name="Items",
                   return_type=TypeRef.named("System.Collections.Generic.List`1", t_param)),
        ],
    )
    tools = Symbol(
        kind=SymbolKind.TYPE,
        name="Tools",
        namespace="Game.Util",
        type_kind=TypeKind.CLASS,
        is_static=True,
        members=[method("Clamp", [("value", INT, "")], INT, is_static=True)],
    )
    return [widget, vector, box, tools]


@pytest.fixture
def graph():
    return build_graph("Game", make_types())


@pytest.fixture
def context(graph):
    context = AssemblyContext()
    context.load(graph, path="Game", sources={"Widget.cs": WIDGET_SOURCE})
    return context


@pytest.fixture
def resolver(context):
    return SymbolResolver(context)
