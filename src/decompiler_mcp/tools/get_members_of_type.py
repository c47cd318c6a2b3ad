"""List members of a type."""

from typing import Optional

from ..context import AssemblyContext
from ..model import Symbol
from ..pagination import paginate
from ..resolver import SymbolResolver
from ..response import try_execute


MEMBER_KINDS = ("method", "constructor", "field", "property", "event", "type")


def _inherited(type_symbol: Symbol, resolver: SymbolResolver, seen: set) -> list[Symbol]:
    """Members of base types declared in the same assembly."""
    graph = resolver.context.require().graph
    members = []
    for base in type_symbol.base_types:
        base_symbol = graph.find_type(base.full_name)
        if base_symbol is None or id(base_symbol) in seen:
            continue
        seen.add(id(base_symbol))
        members.extend(m for m in base_symbol.members if not m.is_constructor)
        members.extend(_inherited(base_symbol, resolver, seen))
    return members


def get_members_of_type(
    context: AssemblyContext,
    type_id: str,
    kind: Optional[str] = None,
    accessibility: Optional[str] = None,
    is_static: Optional[bool] = None,
    include_inherited: bool = False,
    limit: int = 100,
    cursor: Optional[str] = None,
) -> dict:
    """List members of a type with filters and pagination.

    Args:
        context: Assembly context
        type_id: Type id ("T:...")
        kind: Optional filter: method, constructor, field, property, event, type
        accessibility: Optional filter, e.g. "Public"
        is_static: Optional static/instance filter
        include_inherited: Include members of base types from the same assembly
        limit: Page size
        cursor: Cursor from a previous page
    """
    def run():
        resolver = SymbolResolver(context)
        type_symbol = resolver.require_type(type_id)
        if kind and kind.lower() not in MEMBER_KINDS:
            raise ValueError(f"Unknown member kind: {kind}")

        members = list(type_symbol.members) + list(type_symbol.nested_types)
        if include_inherited:
            members.extend(_inherited(type_symbol, resolver, {id(type_symbol)}))
        if kind:
            members = [m for m in members if m.kind_label.lower() == kind.lower()]
        if accessibility:
            members = [m for m in members if m.accessibility.value.lower() == accessibility.lower()]
        if is_static is not None:
            members = [m for m in members if m.is_static == is_static]

        members.sort(key=lambda m: (m.name, m.kind.value))
        return paginate(members, limit, cursor, lambda m: resolver.summarize(m).to_dict())

    return try_execute(run)
