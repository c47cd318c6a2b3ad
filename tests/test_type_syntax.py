"""Tests for the C# type expression parser."""

import pytest

from decompiler_mcp.parser import TypeSyntaxError, parse_type_syntax


def names(syntax):
    return [part.name for part in syntax.parts]


def test_simple_and_qualified():
    """Test plain and dotted names."""
    assert parse_type_syntax("int").simple == "int"
    assert names(parse_type_syntax("System.Collections.Generic.List<int>")) == [
        "System", "Collections", "Generic", "List",
    ]


def test_global_and_verbatim():
    """Test global:: and @ identifiers."""
    assert names(parse_type_syntax("global::System.String")) == ["System", "String"]
    assert parse_type_syntax("@class").simple == "class"


def test_generic_arguments():
    """Test nested generic arguments."""
    syntax = parse_type_syntax("Dictionary<string, List<int>>")
    arguments = syntax.parts[0].arguments

    assert len(arguments) == 2
    assert arguments[0].simple == "string"
    assert arguments[1].parts[0].name == "List"
    assert arguments[1].parts[0].arguments[0].simple == "int"


def test_generic_on_outer_segment():
    """Test arguments attached to a non-final segment."""
    syntax = parse_type_syntax("Outer<T>.Inner")
    assert [len(p.arguments) for p in syntax.parts] == [1, 0]


def test_arrays():
    """Test single, multi-dimensional and jagged arrays."""
    single = parse_type_syntax("int[]")
    assert single.rank == 1
    assert single.element.simple == "int"

    multi = parse_type_syntax("int[,,]")
    assert multi.rank == 3

    jagged = parse_type_syntax("int[][,]")
    assert jagged.rank == 1
    assert jagged.element.rank == 2
    assert jagged.element.element.simple == "int"


def test_pointer_and_nullable():
    """Test pointer and nullable suffixes."""
    pointer = parse_type_syntax("byte*")
    assert pointer.pointer
    assert pointer.element.simple == "byte"

    nullable = parse_type_syntax("int?")
    assert nullable.nullable
    assert nullable.element.simple == "int"

    array_annotation = parse_type_syntax("string[]?")
    assert array_annotation.rank == 1
    assert not array_annotation.nullable


def test_tuples():
    """Test tuple types with and without element names."""
    syntax = parse_type_syntax("(int count, string name)")
    assert syntax.is_tuple
    assert [e.simple for e in syntax.tuple_elements] == ["int", "string"]

    nested = parse_type_syntax("(int, (bool, float))[]")
    assert nested.rank == 1
    assert nested.element.tuple_elements[1].is_tuple


@pytest.mark.parametrize("text", ["", "List<int", "int]", "(int)", "a b", "List<>", "#"])
def test_invalid(text):
    """Test that malformed expressions raise TypeSyntaxError."""
    with pytest.raises(TypeSyntaxError):
        parse_type_syntax(text)


def test_error_is_value_error():
    """Test that syntax errors are ValueErrors."""
    with pytest.raises(ValueError):
        parse_type_syntax("List<")
