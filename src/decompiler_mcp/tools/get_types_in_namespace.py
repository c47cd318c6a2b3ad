"""List types of a namespace."""

from typing import Optional

from ..context import AssemblyContext
from ..errors import SymbolNotFoundError
from ..model import SymbolKind, in_namespace
from ..pagination import paginate
from ..resolver import SymbolResolver, summarize
from ..response import try_execute


def get_types_in_namespace(
    context: AssemblyContext,
    namespace: str,
    deep: bool = False,
    limit: int = 100,
    cursor: Optional[str] = None,
) -> dict:
    """List the top-level types of a namespace.

    Args:
        context: Assembly context
        namespace: Namespace name ("" for the global namespace); an "N:" id is accepted too
        deep: Include types of nested namespaces and nested types
        limit: Page size
        cursor: Cursor from a previous page
    """
    def run():
        loaded = context.require()
        name = namespace
        if namespace.startswith("N:"):
            name = SymbolResolver(context).require_kind(namespace, SymbolKind.NAMESPACE).full_name
        if name and loaded.get(f"N:{name}") is None:
            raise SymbolNotFoundError(f"N:{name}", f"Namespace not found: {name}")

        types = []
        for type_symbol in loaded.graph.types():
            if type_symbol.declaring_type is not None and not deep:
                continue
            ns = type_symbol.namespace
            if ns == name or (deep and (not name or in_namespace(ns, name))):
                types.append(type_symbol)
        types.sort(key=lambda t: t.full_name)
        return paginate(types, limit, cursor, lambda t: summarize(t, loaded.session).to_dict())

    return try_execute(run)
