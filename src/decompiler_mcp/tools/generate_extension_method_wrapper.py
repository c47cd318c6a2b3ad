"""Extension method wrapper tool."""

from ..codegen import ExtensionWrapperGenerator
from ..context import AssemblyContext
from ..resolver import SymbolResolver
from ..response import try_execute


def generate_extension_method_wrapper(context: AssemblyContext, member_id: str) -> dict:
    """Generate an extension method forwarding to an instance method."""
    generator = ExtensionWrapperGenerator(SymbolResolver(context))
    return try_execute(lambda: generator.generate(member_id).to_dict())
