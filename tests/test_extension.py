"""Tests for extension method wrapper generation."""

import pytest

from decompiler_mcp.codegen import ExtensionWrapperGenerator
from decompiler_mcp.context import AssemblyContext
from decompiler_mcp.errors import GenerationError, WrongSymbolKindError
from decompiler_mcp.model import Accessibility, Symbol, SymbolKind, TypeKind, build_graph
from decompiler_mcp.resolver import SymbolResolver

from conftest import INT, method


@pytest.fixture
def generator(resolver):
    return ExtensionWrapperGenerator(resolver)


def test_instance_method_wrapper(generator):
    """Test the wrapper of an instance method with a result."""
    result = generator.generate("M:Game.Core.Widget.Compute(System.String)")
    code = result.code

    assert "// Original: Game.Core.Widget.Compute" in code
    assert "using Game.Core;" in code
    assert "namespace ExtensionMethods" in code
    assert "public static class Extensions" in code
    assert "public static int Compute(this Widget instance, string name)" in code
    assert "return instance.Compute(name);" in code
    assert result.target.canonical_id == "M:Game.Core.Widget.Compute(System.String)"
    assert any("extension syntax" in note for note in result.notes)


def test_void_method_wrapper(generator):
    """Test that void methods call through without returning."""
    code = generator.generate("M:Game.Core.Widget.Reset").code
    assert "public static void Reset(this Widget instance)" in code
    assert "            instance.Reset();" in code
    assert "return instance" not in code


def test_out_parameters_are_forwarded(generator):
    """Test that by-ref modifiers appear in the signature and the call."""
    result = generator.generate("M:Game.Core.Widget.TryGet(System.String,System.Int32@)")

    assert "public static bool TryGet(this Widget instance, string key, out int value)" in result.code
    assert "return instance.TryGet(key, out value);" in result.code
    assert any("ref/out/in" in note for note in result.notes)


def test_unnamed_and_keyword_parameters(generator):
    """Test positional and escaped parameter names."""
    code = generator.generate("M:Game.Core.Widget.Apply(System.Int32,System.String)").code
    assert "public static void Apply(this Widget instance, int param0, string @object)" in code
    assert "instance.Apply(param0, @object);" in code


def test_generic_wrapper(generator):
    """Test that type and method generic parameters are kept."""
    result = generator.generate("M:Game.Core.Box`1.Map``1(``0,`0[])")

    assert "public static U Map<T, U>(this Box<T> instance, U value, T[] items)" in result.code
    assert "return instance.Map(value, items);" in result.code
    assert any("Generic type parameters" in note for note in result.notes)


def test_static_method_rejected(generator):
    """Test that static methods have no instance to extend."""
    with pytest.raises(GenerationError):
        generator.generate("M:Game.Util.Tools.Clamp(System.Int32)")


def test_constructor_rejected(generator):
    """Test that constructors cannot be wrapped."""
    with pytest.raises(GenerationError):
        generator.generate("M:Game.Core.Widget.#ctor(System.Int32)")


def test_non_method_rejected(generator):
    """Test non-method targets."""
    with pytest.raises(WrongSymbolKindError):
        generator.generate("P:Game.Core.Widget.Name")


def test_explicit_and_non_public_targets():
    """Test explicit interface implementations and accessibility notes."""
    widget = Symbol(
        kind=SymbolKind.TYPE,
        name="Widget",
        namespace="Game.Core",
        type_kind=TypeKind.CLASS,
        accessibility=Accessibility.INTERNAL,
        members=[
            method("Game.Core.IFoo.Bar", [("value", INT, "")], accessibility=Accessibility.PRIVATE),
            method("Tick"),
        ],
    )
    context = AssemblyContext()
    context.load(build_graph("Game", [widget]))
    generator = ExtensionWrapperGenerator(SymbolResolver(context))

    with pytest.raises(GenerationError):
        generator.generate("M:Game.Core.Widget.Game#Core#IFoo#Bar(System.Int32)")

    result = generator.generate("M:Game.Core.Widget.Tick")
    assert "public static void Tick(this Widget instance)" in result.code
    assert any("not public" in note for note in result.notes)
