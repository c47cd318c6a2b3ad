"""Tests for C# type rendering."""

import pytest

from decompiler_mcp.errors import GenerationError
from decompiler_mcp.model import (
    TypeRef,
    TypeShape,
    escape_keyword,
    render_type,
    render_type_definition,
    sanitize_identifier,
)


def named(name, *args):
    return TypeRef.named(name, *args)


def test_keyword_types():
    """Test that framework primitives render as keywords."""
    assert render_type(named("System.Int32")) == "int"
    assert render_type(named("System.String")) == "string"
    assert render_type(named("System.Void")) == "void"
    assert render_type(named("System.Object")) == "object"


def test_named_types_drop_namespace():
    """Test plain named types."""
    assert render_type(named("Game.Core.Widget")) == "Widget"
    assert render_type(named("Widget")) == "Widget"


def test_generic_instantiation():
    """Test generic arguments and the arity suffix."""
    dictionary = named("System.Collections.Generic.Dictionary`2", named("System.String"), named("Game.Item"))
    assert render_type(dictionary) == "Dictionary<string, Item>"

    nested = named("System.Collections.Generic.List`1", named("System.Collections.Generic.List`1", named("System.Int32")))
    assert render_type(nested) == "List<List<int>>"


def test_nested_generic_type():
    """Test that arguments are split across nested segments."""
    inner = named("Game.Outer`1+Inner`1", TypeRef.generic_parameter("T", 0), named("System.Int32"))
    assert render_type(inner) == "Outer<T>.Inner<int>"

    plain = named("Game.Outer`1+Leaf", TypeRef.generic_parameter("T", 0))
    assert render_type(plain) == "Outer<T>.Leaf"


def test_arrays_and_pointers():
    """Test array ranks and pointers."""
    assert render_type(TypeRef.array(named("System.Int32"))) == "int[]"
    assert render_type(TypeRef.array(named("System.Int32"), rank=2)) == "int[,]"
    assert render_type(TypeRef.array(TypeRef.array(named("System.Byte")))) == "byte[][]"
    assert render_type(TypeRef.pointer(named("System.Byte"))) == "byte*"


def test_generic_parameter():
    """Test generic parameters render by name."""
    assert render_type(TypeRef.generic_parameter("TKey", 0)) == "TKey"


def test_broken_shapes_raise():
    """Test that inconsistent references raise GenerationError."""
    with pytest.raises(GenerationError):
        render_type(None)
    with pytest.raises(GenerationError):
        render_type(TypeRef(TypeShape.ARRAY))
    with pytest.raises(GenerationError):
        render_type(TypeRef(TypeShape.NAMED))
    with pytest.raises(GenerationError):
        render_type(TypeRef(TypeShape.GENERIC_PARAMETER))


def test_type_definition():
    """Test open generic rendering for typeof()."""
    box = named("Game.Box`1", TypeRef.generic_parameter("T", 0))
    assert render_type_definition(box) == "Box<>"

    pair = named("Game.Pair`2", TypeRef.generic_parameter("A", 0), TypeRef.generic_parameter("B", 1))
    assert render_type_definition(pair) == "Pair<,>"

    closed = named("Game.Box`1", named("System.Int32"))
    assert render_type_definition(closed) == "Box<int>"
    assert render_type_definition(named("Game.Widget")) == "Widget"


def test_sanitize_identifier():
    """Test identifier sanitization."""
    assert sanitize_identifier("Widget_Compute") == "Widget_Compute"
    assert sanitize_identifier("Widget_.ctor") == "Widget__ctor"
    assert sanitize_identifier("<Foo>b__0") == "Foo_b__0"
    assert sanitize_identifier("a..b") == "a_b"
    assert sanitize_identifier("...") == "Target"
    assert sanitize_identifier("") == "Target"


def test_escape_keyword():
    """Test keyword escaping."""
    assert escape_keyword("object") == "@object"
    assert escape_keyword("value") == "value"
