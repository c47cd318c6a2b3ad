"""Symbol model: symbols, type references, graphs and C# rendering."""

from .symbols import (
    Accessibility,
    Parameter,
    SourceSpan,
    Symbol,
    SymbolKind,
    TypeKind,
    TypeRef,
    TypeShape,
    VOID,
    make_symbol_id,
)
from .graph import SymbolGraph, build_graph, in_namespace, namespace_chain
from .rendering import (
    CSHARP_KEYWORDS,
    KEYWORD_ALIASES,
    KEYWORD_TYPES,
    escape_keyword,
    render_type,
    render_type_definition,
    sanitize_identifier,
)

__all__ = [
    "Accessibility",
    "Parameter",
    "SourceSpan",
    "Symbol",
    "SymbolKind",
    "TypeKind",
    "TypeRef",
    "TypeShape",
    "VOID",
    "make_symbol_id",
    "SymbolGraph",
    "build_graph",
    "in_namespace",
    "namespace_chain",
    "CSHARP_KEYWORDS",
    "KEYWORD_ALIASES",
    "KEYWORD_TYPES",
    "escape_keyword",
    "render_type",
    "render_type_definition",
    "sanitize_identifier",
]
