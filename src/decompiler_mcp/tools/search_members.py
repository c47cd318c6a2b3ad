"""Search members across the loaded assembly."""

from typing import Optional

from ..context import AssemblyContext
from ..model import Symbol, SymbolKind, in_namespace
from ..resolver import render_signature, summarize
from ..response import try_execute


def search_members(
    context: AssemblyContext,
    query: str,
    kind: Optional[str] = None,
    namespace: Optional[str] = None,
    max_results: int = 20,
) -> dict:
    """Search types and members by name and signature.

    Args:
        context: Assembly context
        query: Search query
        kind: Optional filter: type, method, constructor, field, property, event
        namespace: Optional namespace filter; nested namespaces match too
        max_results: Maximum results to return

    Returns:
        Envelope with scored results, best first
    """
    def run():
        loaded = context.require()
        if not query or not query.strip():
            raise ValueError("query must not be empty")

        query_lower = query.strip().lower()
        query_words = set(query_lower.split())

        scored = []
        for symbol in loaded.graph.all_symbols():
            if symbol.kind is SymbolKind.NAMESPACE:
                continue
            if kind and symbol.kind_label.lower() != kind.lower():
                continue
            if namespace and not in_namespace(symbol.namespace, namespace):
                continue
            score = _calculate_score(symbol, query_lower, query_words)
            if score > 0:
                scored.append((score, symbol))

        scored.sort(key=lambda item: (-item[0], item[1].full_name))
        results = []
        for score, symbol in scored[:max_results]:
            entry = summarize(symbol, loaded.session).to_dict()
            entry["score"] = score
            results.append(entry)

        return {
            "query": query,
            "result_count": len(results),
            "total_matches": len(scored),
            "results": results,
        }

    return try_execute(run)


def _calculate_score(symbol: Symbol, query_lower: str, query_words: set) -> int:
    """Calculate search score for a symbol."""
    score = 0

    # 1. Name match
    name_lower = symbol.display_name.lower()
    if query_lower == name_lower:
        score += 20
    elif query_lower in name_lower:
        score += 10

    # 2. Name word overlap
    for word in query_words:
        if word in name_lower:
            score += 5

    # 3. Signature match
    sig_lower = render_signature(symbol).lower()
    if query_lower in sig_lower:
        score += 8
    for word in query_words:
        if word in sig_lower:
            score += 2

    # 4. Qualified name match
    if query_lower in symbol.full_name.lower():
        score += 3

    return score
