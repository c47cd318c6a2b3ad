"""List namespaces of the loaded assembly."""

from typing import Optional

from ..context import AssemblyContext
from ..pagination import paginate
from ..resolver import summarize
from ..response import try_execute


def list_namespaces(
    context: AssemblyContext,
    prefix: str = "",
    limit: int = 100,
    cursor: Optional[str] = None,
) -> dict:
    """List namespaces, optionally filtered by a case-insensitive prefix."""
    def run():
        loaded = context.require()
        prefix_lower = (prefix or "").lower()
        namespaces = [
            ns for ns in loaded.graph.namespaces()
            if ns.name.lower().startswith(prefix_lower)
        ]
        return paginate(namespaces, limit, cursor, lambda ns: summarize(ns, loaded.session).to_dict())

    return try_execute(run)
