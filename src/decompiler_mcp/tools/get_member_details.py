"""Detailed metadata of one member."""

from ..context import AssemblyContext
from ..decompiler import SourceDecompiler
from ..hierarchy import base_definition, derived_types, find_overrides, implementors
from ..model import SymbolKind, TypeKind, render_type
from ..response import try_execute


def get_member_details(context: AssemblyContext, member_id: str) -> dict:
    """Summary plus attributes, doc comment, source location and inheritance links."""
    def run():
        decompiler = SourceDecompiler(context)
        resolver = decompiler.resolver
        symbol = resolver.require(member_id)
        graph = context.require().graph

        details = resolver.summarize(symbol).to_dict()
        details["is_override"] = symbol.is_override
        details["attributes"] = list(symbol.attributes)
        details["xml_doc"] = decompiler.doc_comment(symbol)
        details["source"] = (
            {"file": symbol.source.file, "line": symbol.source.line, "end_line": symbol.source.end_line}
            if symbol.source is not None else None
        )

        if symbol.kind is SymbolKind.TYPE:
            details["type_kind"] = symbol.type_kind.value if symbol.type_kind is not None else None
            details["type_parameters"] = list(symbol.type_parameters)
            details["base_types"] = [render_type(ref) for ref in symbol.base_types]
            details["derived_type_ids"] = [
                resolver.generate_id(t) for t in derived_types(graph, symbol, transitive=False)
            ]
            if symbol.type_kind is TypeKind.INTERFACE:
                details["implementor_ids"] = [resolver.generate_id(t) for t in implementors(graph, symbol)]
            return details

        if symbol.return_type is not None:
            details["return_type"] = render_type(symbol.return_type)
        if symbol.parameters:
            details["parameters"] = [
                {"name": p.name, "type": render_type(p.type), "modifier": p.modifier or None}
                for p in symbol.parameters
            ]
        if symbol.kind is SymbolKind.METHOD:
            details["type_parameters"] = list(symbol.type_parameters)
            base = base_definition(graph, symbol)
            details["base_definition_id"] = resolver.generate_id(base) if base is not None else None
            details["override_ids"] = [resolver.generate_id(m) for m in find_overrides(graph, symbol)]
        return details

    return try_execute(run)
