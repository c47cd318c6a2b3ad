"""Harmony patch skeleton tool."""

from ..codegen import DEFAULT_PATCH_KINDS, HarmonyPatchGenerator
from ..context import AssemblyContext
from ..resolver import SymbolResolver
from ..response import try_execute


def generate_harmony_patch_skeleton(
    context: AssemblyContext,
    member_id: str,
    patch_kinds: str = DEFAULT_PATCH_KINDS,
    include_reflection_targeting: bool = True,
) -> dict:
    """Generate a Harmony patch file for a method.

    Args:
        context: Assembly context
        member_id: Method id ("M:...")
        patch_kinds: Comma-separated hook kinds: Prefix, Postfix, Transpiler, Finalizer
        include_reflection_targeting: Bind the target through AccessTools by
            parameter types instead of by name

    Returns:
        Envelope with target, code and notes
    """
    generator = HarmonyPatchGenerator(SymbolResolver(context))
    return try_execute(
        lambda: generator.generate(member_id, patch_kinds, include_reflection_targeting).to_dict()
    )
