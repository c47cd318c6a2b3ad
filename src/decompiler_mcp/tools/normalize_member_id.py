"""Turn loosely written member references into ids."""

import re

from ..context import AssemblyContext
from ..errors import SymbolNotFoundError
from ..model import Symbol, SymbolGraph, SymbolKind
from ..resolver import NotFound, NotFoundReason, SymbolResolver, parse_kind, split_session
from ..response import try_execute


MAX_CANDIDATES = 10
MAX_TYPE_CANDIDATES = 5

_PARAMETER_LIST = re.compile(r"\(.*\)$")


def _members_named(type_symbol: Symbol, name: str) -> list[Symbol]:
    return [
        m for m in list(type_symbol.members) + list(type_symbol.nested_types)
        if m.name == name or m.display_name == name
    ]


def _qualified(graph: SymbolGraph, text: str) -> list[Symbol]:
    """Candidates for "Namespace.Type", "Namespace.Type.Member" or "Namespace.Type:Member"."""
    type_symbol = graph.find_type(text)
    if type_symbol is not None:
        return [type_symbol]

    for separator in (":", "."):
        type_name, sep, member = text.rpartition(separator)
        if not sep:
            continue
        type_symbol = graph.find_type(type_name)
        if type_symbol is not None:
            return _members_named(type_symbol, member)
    return []


def _by_name(graph: SymbolGraph, text: str) -> list[Symbol]:
    """Types and members whose simple name matches the last segment of the text."""
    name = re.split(r"[.:]", text)[-1]
    types = [t for t in graph.types() if t.display_name == name or t.name == name]
    members = [
        m for t in graph.types() for m in t.members
        if m.name == name
    ]
    candidates = sorted(types, key=lambda t: t.full_name)[:MAX_TYPE_CANDIDATES] + members
    return candidates[:MAX_CANDIDATES]


def normalize_member_id(context: AssemblyContext, member_ref: str) -> dict:
    """Normalize an id or a name like "Game.Core.Widget.Compute" to a member id.

    Ids issued by an earlier load are reported as such rather than remapped.
    When the reference is ambiguous, the candidates are returned instead.
    """
    def run():
        resolver = SymbolResolver(context)
        graph = context.require().graph
        text = (member_ref or "").strip()
        if not text:
            raise ValueError("member reference must not be empty")

        result = resolver.resolve(text)
        if not isinstance(result, NotFound):
            return {"input": member_ref, "normalized_id": resolver.generate_id(result), "candidates": []}
        if result.reason is NotFoundReason.STALE_ID:
            raise result.to_error()

        canonical, _ = split_session(text)
        if parse_kind(canonical) is not None:
            # Well-formed but unknown: retry on the name part
            canonical = canonical[2:]
        name = _PARAMETER_LIST.sub("", canonical).replace("#", ".")

        candidates = _qualified(graph, name) or _by_name(graph, name)
        candidates = [c for c in candidates if c.kind is not SymbolKind.NAMESPACE]
        if not candidates:
            raise SymbolNotFoundError(text, f"No member matches {text!r}")

        return {
            "input": member_ref,
            "normalized_id": resolver.generate_id(candidates[0]) if len(candidates) == 1 else None,
            "candidates": [resolver.summarize(c).to_dict() for c in candidates[:MAX_CANDIDATES]],
        }

    return try_execute(run)
