"""Detour stub tool."""

from ..codegen import DetourStubGenerator
from ..context import AssemblyContext
from ..resolver import SymbolResolver
from ..response import try_execute


def generate_detour_stub(context: AssemblyContext, member_id: str) -> dict:
    """Generate a logging detour method that calls the original by reflection."""
    generator = DetourStubGenerator(SymbolResolver(context))
    return try_execute(lambda: generator.generate(member_id).to_dict())
