"""Tests for the tree-sitter C# loader."""

import pytest

from decompiler_mcp.errors import AssemblyLoadError
from decompiler_mcp.model import Accessibility, SymbolKind, TypeKind
from decompiler_mcp.parser import (
    discover_source_files,
    load_source_tree,
    parse_sources,
    should_skip_file,
)


WIDGET_CS = """using System;
using System.Collections.Generic;

namespace Game.Core
{
    public class Widget : IDisposable
    {
        private int count;
        public event EventHandler Changed;

        public Widget(int size)
        {
            count = size;
        }

        public string Name { get; set; }

        public int Compute(string name)
        {
            return name.Length + count;
        }

        public bool TryGet(string key, out int value)
        {
            value = 0;
            return false;
        }

        public static Widget Create()
        {
            return new Widget(1);
        }

        public List<Part> Parts() => new List<Part>();

        public string this[int index] => Name;

        public void Dispose() { }

        public class Part
        {
            public void Attach(Widget owner) { }
        }
    }

    public struct Vector
    {
        public float X;

        public static Vector operator +(Vector a, Vector b) => a;

        public static implicit operator float(Vector v) => v.X;
    }

    internal enum Mode
    {
        Off,
        On
    }
}
"""

BOX_CS = """namespace Game.Core
{
    public class Box<T>
    {
        public T Get() { return default; }

        public U Map<U>(U value, T[] items) { return value; }
    }

    public delegate void Handler(object sender, int code);
}
"""

UTIL_CS = """namespace Game.Util;

using Game.Core;

public static class Tools
{
    public static int Clamp(int value) => value;

    public static Widget Make() => Widget.Create();
}
"""


@pytest.fixture(scope="module")
def tree():
    return parse_sources(
        {"Widget.cs": WIDGET_CS, "Box.cs": BOX_CS, "Util/Tools.cs": UTIL_CS},
        name="Game",
    )


def test_types_collected(tree):
    """Test that types of every file are found."""
    graph = tree.graph

    for full_name in ("Game.Core.Widget", "Game.Core.Widget+Part", "Game.Core.Vector",
                      "Game.Core.Mode", "Game.Core.Box`1", "Game.Core.Handler", "Game.Util.Tools"):
        assert graph.find_type(full_name) is not None, full_name

    assert graph.find_type("Game.Core.Vector").type_kind is TypeKind.STRUCT
    assert graph.find_type("Game.Core.Mode").type_kind is TypeKind.ENUM
    assert graph.find_type("Game.Core.Mode").accessibility is Accessibility.INTERNAL
    assert graph.find_type("Game.Core.Handler").type_kind is TypeKind.DELEGATE
    assert graph.find_type("Game.Util.Tools").is_static


def test_method_ids(tree):
    """Test ids of parsed methods match the expected format."""
    index = tree.graph.index

    assert "M:Game.Core.Widget.Compute(System.String)" in index
    assert "M:Game.Core.Widget.TryGet(System.String,System.Int32@)" in index
    assert "M:Game.Core.Widget.Create" in index
    assert "M:Game.Core.Widget.#ctor(System.Int32)" in index
    assert "M:Game.Core.Widget+Part.Attach(Game.Core.Widget)" in index
    assert "M:Game.Core.Box`1.Get" in index
    assert "M:Game.Core.Box`1.Map``1(``0,`0[])" in index


def test_generic_return_resolves(tree):
    """Test that nested and framework generics resolve."""
    parts = tree.graph.get("M:Game.Core.Widget.Parts")
    assert parts.return_type.full_name == "System.Collections.Generic.List`1"
    assert parts.return_type.type_arguments[0].full_name == "Game.Core.Widget+Part"


def test_fields_properties_events(tree):
    """Test non-method members."""
    index = tree.graph.index

    count = index["F:Game.Core.Widget.count"]
    assert count.accessibility is Accessibility.PRIVATE
    assert count.return_type.full_name == "System.Int32"

    assert "P:Game.Core.Widget.Name" in index
    assert "P:Game.Core.Widget.Item(System.Int32)" in index
    assert index["E:Game.Core.Widget.Changed"].return_type.full_name == "System.EventHandler"


def test_operators(tree):
    """Test operator and conversion names."""
    index = tree.graph.index
    assert "M:Game.Core.Vector.op_Addition(Game.Core.Vector,Game.Core.Vector)" in index
    assert "M:Game.Core.Vector.op_Implicit(Game.Core.Vector)~System.Single" in index


def test_enum_members_are_static_fields(tree):
    """Test enum members."""
    off = tree.graph.get("F:Game.Core.Mode.Off")
    assert off.kind is SymbolKind.FIELD
    assert off.is_static


def test_delegate_invoke(tree):
    """Test the Invoke method of delegates."""
    assert "M:Game.Core.Handler.Invoke(System.Object,System.Int32)" in tree.graph.index


def test_base_types(tree):
    """Test base type resolution through usings."""
    widget = tree.graph.find_type("Game.Core.Widget")
    assert [b.full_name for b in widget.base_types] == ["System.IDisposable"]


def test_default_constructor(tree):
    """Test that classes without constructors get a default one."""
    assert "M:Game.Core.Box`1.#ctor" in tree.graph.index
    assert "M:Game.Core.Widget+Part.#ctor" in tree.graph.index
    # Static classes get none
    assert "M:Game.Util.Tools.#ctor" not in tree.graph.index


def test_file_scoped_namespace_and_using(tree):
    """Test file-scoped namespaces and cross-file references."""
    make = tree.graph.get("M:Game.Util.Tools.Make")
    assert make is not None
    assert make.return_type.full_name == "Game.Core.Widget"


def test_source_spans(tree):
    """Test that spans point at the declaration text."""
    compute = tree.graph.get("M:Game.Core.Widget.Compute(System.String)")
    span = compute.source
    text = tree.sources[span.file].encode("utf-8")[span.byte_offset:span.byte_offset + span.byte_length]

    assert span.file == "Widget.cs"
    assert text.decode("utf-8").startswith("public int Compute(string name)")
    assert span.line < span.end_line


def test_partial_types_merge():
    """Test that partial declarations form one type."""
    tree = parse_sources({
        "A.cs": "namespace N { public partial class P { public void A() { } } }",
        "B.cs": "namespace N { partial class P { public void B() { } } }",
    })
    members = {m.name for m in tree.graph.find_type("N.P").members}
    assert {"A", "B"} <= members


def test_syntax_errors_are_recorded():
    """Test that broken files still load what parsed."""
    tree = parse_sources({
        "Good.cs": "namespace N { public class Ok { } }",
        "Bad.cs": "namespace M { public class Broken { void Run( } }",
    })
    assert tree.error_files == ["Bad.cs"]
    assert tree.graph.find_type("N.Ok") is not None


def test_should_skip_file():
    """Test skip patterns."""
    assert should_skip_file("obj/Debug/Game.AssemblyInfo.cs") is True
    assert should_skip_file("bin/Release/Foo.cs") is True
    assert should_skip_file("Forms/Main.Designer.cs") is True
    assert should_skip_file("Game/Widget.cs") is False


def test_discover_source_files(tmp_path):
    """Test file discovery on disk."""
    (tmp_path / "Core").mkdir()
    (tmp_path / "Core" / "Widget.cs").write_text("class Widget { }")
    (tmp_path / "obj").mkdir()
    (tmp_path / "obj" / "Gen.cs").write_text("class Gen { }")
    (tmp_path / "README.md").write_text("# Game")

    files = discover_source_files(tmp_path)
    assert [f.name for f in files] == ["Widget.cs"]


def test_discover_respects_max(tmp_path):
    """Test the max_files cap."""
    for i in range(10):
        (tmp_path / f"F{i}.cs").write_text(f"class F{i} {{ }}")
    assert len(discover_source_files(tmp_path, max_files=3)) == 3


def test_load_source_tree(tmp_path):
    """Test loading a folder named after its project file."""
    (tmp_path / "Game.csproj").write_text("<Project />")
    (tmp_path / "Widget.cs").write_text(WIDGET_CS, encoding="utf-8")

    tree = load_source_tree(str(tmp_path))
    assert tree.graph.name == "Game"
    assert tree.files == ["Widget.cs"]


def test_load_source_tree_errors(tmp_path):
    """Test missing and empty inputs."""
    with pytest.raises(AssemblyLoadError):
        load_source_tree(str(tmp_path / "missing"))
    with pytest.raises(AssemblyLoadError):
        load_source_tree(str(tmp_path))


SHAPES_CS = """namespace Game.Shapes
{
    [Serializable]
    public abstract class Shape
    {
        [Obsolete("use Measure")]
        public virtual double Area() { return 0; }
    }

    public class Circle : Shape
    {
        public override double Area() { return 3.14; }
    }
}
"""


def test_attributes_and_overrides():
    """Test that attributes are kept as written and override is recorded."""
    graph = parse_sources({"Shapes.cs": SHAPES_CS}, name="Shapes").graph

    assert graph.find_type("Game.Shapes.Shape").attributes == ("Serializable",)
    area = graph.get("M:Game.Shapes.Shape.Area")
    assert area.attributes == ('Obsolete("use Measure")',)
    assert area.is_virtual and not area.is_override

    override = graph.get("M:Game.Shapes.Circle.Area")
    assert override.is_override and override.is_virtual
    assert override.attributes == ()


def test_load_source_tree_size_cap(tmp_path):
    """Test that files over the size cap are refused or skipped."""
    source = tmp_path / "Widget.cs"
    source.write_text(WIDGET_CS, encoding="utf-8")

    with pytest.raises(AssemblyLoadError, match="larger than"):
        load_source_tree(str(source), max_size=16)
    with pytest.raises(AssemblyLoadError):
        load_source_tree(str(tmp_path), max_size=16)
    assert load_source_tree(str(source)).files
