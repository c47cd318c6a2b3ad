"""Search types by name."""

import re
from typing import Optional

from ..context import AssemblyContext
from ..model import in_namespace, render_type
from ..pagination import paginate
from ..resolver import summarize
from ..response import try_execute


def search_types(
    context: AssemblyContext,
    query: str,
    regex: bool = False,
    namespace: Optional[str] = None,
    include_nested: bool = True,
    limit: int = 50,
    cursor: Optional[str] = None,
) -> dict:
    """Search types by simple or full name.

    Args:
        context: Assembly context
        query: Case-insensitive substring, or a pattern when regex is set
        regex: Treat query as a regular expression (case-insensitive)
        namespace: Optional namespace filter; nested namespaces match too
        include_nested: Include types declared inside other types
        limit: Page size
        cursor: Cursor from a previous page

    Returns:
        Envelope with a page of type summaries; exact name matches first
    """
    def run():
        loaded = context.require()
        if not query or not query.strip():
            raise ValueError("query must not be empty")

        if regex:
            try:
                pattern = re.compile(query, re.IGNORECASE)
            except re.error as e:
                raise ValueError(f"Invalid regex {query!r}: {e}") from e
            matches = lambda text: pattern.search(text) is not None
        else:
            needle = query.strip().lower()
            matches = lambda text: needle in text.lower()

        found = []
        for type_symbol in loaded.graph.types():
            if type_symbol.declaring_type is not None and not include_nested:
                continue
            if namespace and not in_namespace(type_symbol.namespace, namespace):
                continue
            if matches(type_symbol.display_name) or matches(type_symbol.full_name):
                found.append(type_symbol)

        exact = query.strip().lower()
        found.sort(key=lambda t: (t.display_name.lower() != exact, t.full_name))

        def render(type_symbol):
            entry = summarize(type_symbol, loaded.session).to_dict()
            entry["base_types"] = [render_type(ref) for ref in type_symbol.base_types]
            return entry

        return paginate(found, limit, cursor, render)

    return try_execute(run)
