"""Code generators for patch skeletons, detour stubs and extension wrappers."""

from .result import GeneratedCodeResult
from .harmony import (
    DEFAULT_PATCH_KINDS,
    PATCH_KINDS,
    HarmonyPatchGenerator,
    generate_patch_skeleton,
    parse_patch_kinds,
)
from .detour import DetourStubGenerator, generate_detour_stub
from .extension import ExtensionWrapperGenerator, generate_extension_wrapper

__all__ = [
    "GeneratedCodeResult",
    "DEFAULT_PATCH_KINDS",
    "PATCH_KINDS",
    "HarmonyPatchGenerator",
    "generate_patch_skeleton",
    "parse_patch_kinds",
    "DetourStubGenerator",
    "generate_detour_stub",
    "ExtensionWrapperGenerator",
    "generate_extension_wrapper",
]
