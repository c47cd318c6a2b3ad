"""Resolve member ids to summaries and signatures."""

from ..context import AssemblyContext
from ..resolver import SymbolResolver
from ..response import try_execute


def resolve_member_id(context: AssemblyContext, member_id: str) -> dict:
    """Resolve an id to its MemberSummary."""
    def run():
        resolver = SymbolResolver(context)
        return resolver.summarize(resolver.require(member_id)).to_dict()

    return try_execute(run)


def get_member_signature(context: AssemblyContext, member_id: str) -> dict:
    """Rendered C# signature of a member, with its summary."""
    def run():
        resolver = SymbolResolver(context)
        symbol = resolver.require(member_id)
        return {
            "summary": resolver.summarize(symbol).to_dict(),
            "signature": resolver.render_signature(symbol),
        }

    return try_execute(run)


def get_overloads(context: AssemblyContext, member_id: str) -> dict:
    """All methods of the declaring type sharing the method's name."""
    def run():
        resolver = SymbolResolver(context)
        method = resolver.require_method(member_id)
        overloads = resolver.get_overloads(method)
        return {
            "member_id": member_id.strip(),
            "count": len(overloads),
            "overloads": [resolver.summarize(m).to_dict() for m in overloads],
        }

    return try_execute(run)
