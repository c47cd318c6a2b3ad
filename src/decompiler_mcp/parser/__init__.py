"""Parser package for building symbol graphs from C# source."""

from .type_syntax import TypeSyntax, TypeSyntaxError, parse_type_syntax
from .csharp import (
    CSHARP_EXTENSIONS,
    CSharpLoader,
    SourceTree,
    discover_source_files,
    load_source_tree,
    parse_sources,
    should_skip_file,
)

__all__ = [
    "TypeSyntax",
    "TypeSyntaxError",
    "parse_type_syntax",
    "CSHARP_EXTENSIONS",
    "CSharpLoader",
    "SourceTree",
    "discover_source_files",
    "load_source_tree",
    "parse_sources",
    "should_skip_file",
]
