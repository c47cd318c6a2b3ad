"""Inheritance tools: base types, derived types, implementations, overrides."""

from typing import Optional

from ..context import AssemblyContext
from ..errors import WrongSymbolKindError
from ..hierarchy import (
    all_interfaces,
    base_class_chain,
    base_definition,
    derived_types,
    find_overrides,
    implementors,
    interface_method_implementations,
)
from ..model import SymbolKind, TypeKind, TypeRef, render_type
from ..pagination import paginate
from ..resolver import SymbolResolver
from ..response import try_execute


def _describe(resolver: SymbolResolver, type_ref: TypeRef) -> dict:
    """Summary of an in-assembly type, or a bare reference to an external one."""
    symbol = resolver.context.require().graph.find_type(type_ref.full_name)
    if symbol is not None:
        return resolver.summarize(symbol).to_dict()
    return {"full_name": type_ref.full_name, "name": render_type(type_ref), "external": True}


def find_base_types(context: AssemblyContext, type_id: str, include_interfaces: bool = True) -> dict:
    """Base class chain of a type and, optionally, every interface it implements."""
    def run():
        resolver = SymbolResolver(context)
        type_symbol = resolver.require_type(type_id)
        graph = context.require().graph

        result = {
            "type": resolver.summarize(type_symbol).to_dict(),
            "bases": [_describe(resolver, ref) for ref in base_class_chain(graph, type_symbol)],
        }
        if include_interfaces:
            result["interfaces"] = [_describe(resolver, ref) for ref in all_interfaces(graph, type_symbol)]
        return result

    return try_execute(run)


def find_derived_types(
    context: AssemblyContext,
    base_type_id: str,
    transitive: bool = True,
    limit: int = 100,
    cursor: Optional[str] = None,
) -> dict:
    """Types deriving from a type (or extending an interface).

    Args:
        context: Assembly context
        base_type_id: Type id ("T:...")
        transitive: Include types deriving indirectly
        limit: Page size
        cursor: Cursor from a previous page
    """
    def run():
        resolver = SymbolResolver(context)
        base = resolver.require_type(base_type_id)
        derived = derived_types(context.require().graph, base, transitive)
        return paginate(derived, limit, cursor, lambda t: resolver.summarize(t).to_dict())

    return try_execute(run)


def get_implementations(
    context: AssemblyContext,
    member_id: str,
    limit: int = 100,
    cursor: Optional[str] = None,
) -> dict:
    """Types implementing an interface, or methods implementing an interface method."""
    def run():
        resolver = SymbolResolver(context)
        symbol = resolver.require(member_id)
        graph = context.require().graph

        if symbol.kind is SymbolKind.TYPE and symbol.type_kind is TypeKind.INTERFACE:
            found = implementors(graph, symbol)
        elif (
            symbol.kind is SymbolKind.METHOD
            and symbol.declaring_type is not None
            and symbol.declaring_type.type_kind is TypeKind.INTERFACE
        ):
            found = interface_method_implementations(graph, symbol)
        else:
            raise WrongSymbolKindError(member_id, "Interface or interface method", symbol.kind_label)
        return paginate(found, limit, cursor, lambda s: resolver.summarize(s).to_dict())

    return try_execute(run)


def get_overrides(context: AssemblyContext, method_id: str) -> dict:
    """Virtual method a method overrides, and the overrides of it in derived types."""
    def run():
        resolver = SymbolResolver(context)
        method = resolver.require_method(method_id)
        graph = context.require().graph

        base = base_definition(graph, method)
        if base is None and method.is_virtual and not method.is_override:
            base = method
        overrides = find_overrides(graph, method)
        return {
            "method": resolver.summarize(method).to_dict(),
            "base_definition": resolver.summarize(base).to_dict() if base is not None else None,
            "count": len(overrides),
            "overrides": [resolver.summarize(m).to_dict() for m in overrides],
        }

    return try_execute(run)
