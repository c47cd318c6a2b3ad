"""C# type-name rendering and identifier sanitization for generated code."""

import re

from ..errors import GenerationError
from .symbols import TypeRef, TypeShape


# Framework type name -> C# keyword
KEYWORD_TYPES = {
    "System.Void": "void",
    "System.Object": "object",
    "System.String": "string",
    "System.Boolean": "bool",
    "System.Char": "char",
    "System.SByte": "sbyte",
    "System.Byte": "byte",
    "System.Int16": "short",
    "System.UInt16": "ushort",
    "System.Int32": "int",
    "System.UInt32": "uint",
    "System.Int64": "long",
    "System.UInt64": "ulong",
    "System.IntPtr": "nint",
    "System.UIntPtr": "nuint",
    "System.Single": "float",
    "System.Double": "double",
    "System.Decimal": "decimal",
}

# C# keyword -> framework type name
KEYWORD_ALIASES = {keyword: full_name for full_name, keyword in KEYWORD_TYPES.items()}

CSHARP_KEYWORDS = frozenset({
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch", "char",
    "checked", "class", "const", "continue", "decimal", "default", "delegate",
    "do", "double", "else", "enum", "event", "explicit", "extern", "false",
    "finally", "fixed", "float", "for", "foreach", "goto", "if", "implicit",
    "in", "int", "interface", "internal", "is", "lock", "long", "namespace",
    "new", "null", "object", "operator", "out", "override", "params", "private",
    "protected", "public", "readonly", "ref", "return", "sbyte", "sealed",
    "short", "sizeof", "stackalloc", "static", "string", "struct", "switch",
    "this", "throw", "true", "try", "typeof", "uint", "ulong", "unchecked",
    "unsafe", "ushort", "using", "virtual", "void", "volatile", "while",
})

FALLBACK_IDENTIFIER = "Target"

_DISALLOWED = re.compile(r"[^A-Za-z0-9_]+")


def render_type(type_ref: TypeRef) -> str:
    """Render a type reference the way it is written in C# source.

    System.Int32 -> int, List`1{String} -> List<string>, Int32[,] -> int[,],
    Outer`1+Inner{T} -> Outer<T>.Inner.
    """
    if type_ref is None:
        raise GenerationError("Missing type reference")

    shape = type_ref.shape
    if shape is TypeShape.GENERIC_PARAMETER:
        if not type_ref.full_name:
            raise GenerationError("Generic parameter without a name")
        return type_ref.full_name
    if shape is TypeShape.ARRAY:
        if type_ref.element_type is None:
            raise GenerationError("Array type without an element type")
        return render_type(type_ref.element_type) + "[" + "," * (type_ref.rank - 1) + "]"
    if shape is TypeShape.POINTER:
        if type_ref.element_type is None:
            raise GenerationError("Pointer type without an element type")
        return render_type(type_ref.element_type) + "*"
    if shape is not TypeShape.NAMED:
        raise GenerationError(f"Unrecognized type shape: {shape!r}")
    if not type_ref.full_name:
        raise GenerationError("Named type without a name")

    if not type_ref.type_arguments and type_ref.full_name in KEYWORD_TYPES:
        return KEYWORD_TYPES[type_ref.full_name]

    return _render_named(type_ref)


def _render_named(type_ref: TypeRef) -> str:
    outer, *nested = type_ref.full_name.split("+")
    segments = [outer.rsplit(".", 1)[-1], *nested]
    arguments = list(type_ref.type_arguments)

    rendered = []
    for segment in segments:
        name, _, arity = segment.partition("`")
        count = int(arity) if arity.isdigit() else 0
        own, arguments = arguments[:count], arguments[count:]
        if own:
            name += "<" + ", ".join(render_type(arg) for arg in own) + ">"
        rendered.append(name)

    # Arguments beyond the declared arities belong to the innermost type
    if arguments:
        rendered[-1] += "<" + ", ".join(render_type(arg) for arg in arguments) + ">"

    return ".".join(rendered)


def render_type_definition(type_ref: TypeRef) -> str:
    """Render an open generic for typeof(): Box`2 -> Box<,>."""
    if type_ref.shape is not TypeShape.NAMED or not type_ref.type_arguments:
        return render_type(type_ref)
    if not type_ref.contains_generic_parameters():
        return render_type(type_ref)

    outer, *nested = type_ref.full_name.split("+")
    rendered = []
    for segment in [outer.rsplit(".", 1)[-1], *nested]:
        name, _, arity = segment.partition("`")
        count = int(arity) if arity.isdigit() else 0
        rendered.append(name + ("<" + "," * (count - 1) + ">" if count else ""))
    return ".".join(rendered)


def sanitize_identifier(name: str) -> str:
    """Turn an arbitrary symbol name into a C# identifier.

    Runs of characters other than letters, digits and underscore collapse
    into one underscore; leading underscores are dropped.
    """
    cleaned = _DISALLOWED.sub("_", name or "").lstrip("_")
    return cleaned or FALLBACK_IDENTIFIER


def escape_keyword(name: str) -> str:
    """Verbatim-prefix names that collide with C# keywords: object -> @object."""
    return f"@{name}" if name in CSHARP_KEYWORDS else name
