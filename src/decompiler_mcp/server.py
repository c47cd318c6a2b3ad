"""MCP server for decompiler-mcp."""

import asyncio
import json
import logging

from mcp.server import Server
from mcp.types import Tool, TextContent

from .codegen import DEFAULT_PATCH_KINDS
from .config import Settings, configure_logging
from .context import AssemblyContext
from .response import error
from .tools.load_assembly import load_assembly, unload
from .tools.status import status
from .tools.list_namespaces import list_namespaces
from .tools.get_types_in_namespace import get_types_in_namespace
from .tools.get_members_of_type import MEMBER_KINDS, get_members_of_type
from .tools.resolve_member_id import get_member_signature, get_overloads, resolve_member_id
from .tools.search_members import search_members
from .tools.get_decompiled_source import (
    batch_get_decompiled_source,
    get_decompiled_source,
    get_source_slice,
)
from .tools.get_member_details import get_member_details
from .tools.search_types import search_types
from .tools.normalize_member_id import normalize_member_id
from .tools.type_hierarchy import find_base_types, find_derived_types, get_implementations, get_overrides
from .tools.generate_harmony_patch_skeleton import generate_harmony_patch_skeleton
from .tools.generate_detour_stub import generate_detour_stub
from .tools.generate_extension_method_wrapper import generate_extension_method_wrapper

logger = logging.getLogger(__name__)


# Create server
server = Server("decompiler-mcp")

# The assembly this server process works on
context = AssemblyContext()


def _member_id_schema(description: str = "Member ID, e.g. M:Game.Core.Widget.Compute(System.String)") -> dict:
    return {"type": "string", "description": description}


_PAGINATION = {
    "limit": {
        "type": "integer",
        "description": "Maximum number of items per page",
        "default": 100
    },
    "cursor": {
        "type": "string",
        "description": "Cursor from next_cursor of the previous page"
    },
}


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List all available tools."""
    return [
        Tool(
            name="load_assembly",
            description="Load an assembly exported to C# (a .cs file or a project folder), a JSON symbol dump, or a previously saved assembly by name. Replaces the currently loaded assembly.",
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "Path to a .cs file, a folder of .cs files, or a .json symbol dump (supports ~)"
                    }
                },
                "required": ["path"]
            }
        ),
        Tool(
            name="unload",
            description="Unload the current assembly.",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        Tool(
            name="status",
            description="Show the loaded assembly, its counts, and assemblies saved in the graph store.",
            inputSchema={
                "type": "object",
                "properties": {}
            }
        ),
        Tool(
            name="list_namespaces",
            description="List namespaces of the loaded assembly, optionally filtered by prefix.",
            inputSchema={
                "type": "object",
                "properties": {
                    "prefix": {
                        "type": "string",
                        "description": "Case-insensitive namespace prefix",
                        "default": ""
                    },
                    **_PAGINATION,
                }
            }
        ),
        Tool(
            name="get_types_in_namespace",
            description="List types declared in a namespace.",
            inputSchema={
                "type": "object",
                "properties": {
                    "namespace": {
                        "type": "string",
                        "description": "Namespace name, e.g. 'Game.Core' ('' for the global namespace)"
                    },
                    "deep": {
                        "type": "boolean",
                        "description": "Include nested namespaces and nested types",
                        "default": False
                    },
                    **_PAGINATION,
                },
                "required": ["namespace"]
            }
        ),
        Tool(
            name="get_members_of_type",
            description="List members of a type with optional filters.",
            inputSchema={
                "type": "object",
                "properties": {
                    "type_id": _member_id_schema("Type ID, e.g. T:Game.Core.Widget"),
                    "kind": {
                        "type": "string",
                        "description": "Optional filter by member kind",
                        "enum": list(MEMBER_KINDS)
                    },
                    "accessibility": {
                        "type": "string",
                        "description": "Optional filter, e.g. 'Public' or 'Private'"
                    },
                    "is_static": {
                        "type": "boolean",
                        "description": "Optional static/instance filter"
                    },
                    "include_inherited": {
                        "type": "boolean",
                        "description": "Include members of base types declared in the same assembly",
                        "default": False
                    },
                    **_PAGINATION,
                },
                "required": ["type_id"]
            }
        ),
        Tool(
            name="resolve_member_id",
            description="Resolve a member ID to its summary (name, kind, declaring type, signature, flags).",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema()
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="get_member_signature",
            description="Get the C# signature of a member.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema()
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="get_overloads",
            description="List all overloads of a method, the method itself included.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema()
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="search_members",
            description="Search types and members by name and signature. Returns scored matches with member IDs.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Search query (matches names and signatures)"
                    },
                    "kind": {
                        "type": "string",
                        "description": "Optional filter by symbol kind",
                        "enum": list(MEMBER_KINDS)
                    },
                    "namespace": {
                        "type": "string",
                        "description": "Optional namespace filter; nested namespaces match too"
                    },
                    "max_results": {
                        "type": "integer",
                        "description": "Maximum number of results to return",
                        "default": 20
                    }
                },
                "required": ["query"]
            }
        ),
        Tool(
            name="get_decompiled_source",
            description="Get the C# source of a type or member.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema()
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="get_source_slice",
            description="Get a line range (1-based, inclusive) of a member's C# source.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema(),
                    "start_line": {
                        "type": "integer",
                        "description": "First line",
                        "default": 1
                    },
                    "end_line": {
                        "type": "integer",
                        "description": "Last line; defaults to the end of the source"
                    },
                    "include_line_numbers": {
                        "type": "boolean",
                        "description": "Prefix lines with their numbers",
                        "default": False
                    },
                    "context_lines": {
                        "type": "integer",
                        "description": "Extra lines around the range",
                        "default": 0
                    }
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="generate_harmony_patch_skeleton",
            description="Generate a compilable Harmony patch skeleton for a method, with hooks shaped by the method's signature.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema("Method ID, e.g. M:Game.Core.Widget.Compute(System.String)"),
                    "patch_kinds": {
                        "type": "string",
                        "description": "Comma-separated hook kinds: Prefix, Postfix, Transpiler, Finalizer. Unknown kinds are ignored.",
                        "default": DEFAULT_PATCH_KINDS
                    },
                    "include_reflection_targeting": {
                        "type": "boolean",
                        "description": "Bind the target with AccessTools by parameter types (always on for overloaded methods)",
                        "default": True
                    }
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="generate_detour_stub",
            description="Generate a detour method that logs and calls the original method via reflection.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema("Method ID")
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="generate_extension_method_wrapper",
            description="Generate an extension method wrapper for an instance method to ease call sites in mods.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema("Instance method ID")
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="find_base_types",
            description="Get the base class chain of a type and the interfaces it implements.",
            inputSchema={
                "type": "object",
                "properties": {
                    "type_id": _member_id_schema("Type ID, e.g. T:Game.Core.Widget"),
                    "include_interfaces": {
                        "type": "boolean",
                        "description": "Include implemented interfaces",
                        "default": True
                    }
                },
                "required": ["type_id"]
            }
        ),
        Tool(
            name="find_derived_types",
            description="List types deriving from a type or extending an interface.",
            inputSchema={
                "type": "object",
                "properties": {
                    "base_type_id": _member_id_schema("Type ID"),
                    "transitive": {
                        "type": "boolean",
                        "description": "Include types deriving indirectly",
                        "default": True
                    },
                    **_PAGINATION,
                },
                "required": ["base_type_id"]
            }
        ),
        Tool(
            name="get_implementations",
            description="List types implementing an interface, or methods implementing an interface method.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema("Interface type ID or interface method ID"),
                    **_PAGINATION,
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="get_overrides",
            description="Get the virtual method a method overrides and its overrides in derived types.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema("Method ID")
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="get_member_details",
            description="Get a member's summary with attributes, doc comment, source location and inheritance links.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_id": _member_id_schema()
                },
                "required": ["member_id"]
            }
        ),
        Tool(
            name="batch_get_decompiled_source",
            description="Get the first lines of source for several members at once, under a total size cap.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_ids": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Member IDs to fetch"
                    },
                    "max_total_chars": {
                        "type": "integer",
                        "description": "Stop once the combined code would exceed this many characters",
                        "default": 200000
                    }
                },
                "required": ["member_ids"]
            }
        ),
        Tool(
            name="search_types",
            description="Search types by name; substring or regex, case-insensitive.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "Substring, or a regular expression when regex is true"
                    },
                    "regex": {
                        "type": "boolean",
                        "description": "Treat the query as a regular expression",
                        "default": False
                    },
                    "namespace": {
                        "type": "string",
                        "description": "Optional namespace filter; nested namespaces match too"
                    },
                    "include_nested": {
                        "type": "boolean",
                        "description": "Include nested types",
                        "default": True
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Maximum number of items per page",
                        "default": 50
                    },
                    "cursor": _PAGINATION["cursor"],
                },
                "required": ["query"]
            }
        ),
        Tool(
            name="normalize_member_id",
            description="Turn an ID or a loosely written name (Namespace.Type.Member, Type:Member) into a member ID, or list candidates when ambiguous.",
            inputSchema={
                "type": "object",
                "properties": {
                    "member_ref": {
                        "type": "string",
                        "description": "Member ID or name to normalize"
                    }
                },
                "required": ["member_ref"]
            }
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent]:
    """Handle tool calls."""
    try:
        settings = Settings.from_env()
    except ValueError as e:
        result = error(f"Invalid configuration: {e}", "InvalidConfiguration")
        return [TextContent(type="text", text=json.dumps(result, indent=2))]
    storage_path = str(settings.store_path)

    try:
        if name == "load_assembly":
            # Parsing a source tree is CPU bound; keep the event loop free
            result = await asyncio.to_thread(
                load_assembly,
                context,
                path=arguments["path"],
                storage_path=storage_path,
                max_files=settings.max_files,
                max_file_size=settings.max_file_size,
            )
        elif name == "unload":
            result = unload(context)
        elif name == "status":
            result = status(context, storage_path=storage_path)
        elif name == "list_namespaces":
            result = list_namespaces(
                context,
                prefix=arguments.get("prefix", ""),
                limit=arguments.get("limit", 100),
                cursor=arguments.get("cursor"),
            )
        elif name == "get_types_in_namespace":
            result = get_types_in_namespace(
                context,
                namespace=arguments["namespace"],
                deep=arguments.get("deep", False),
                limit=arguments.get("limit", 100),
                cursor=arguments.get("cursor"),
            )
        elif name == "get_members_of_type":
            result = get_members_of_type(
                context,
                type_id=arguments["type_id"],
                kind=arguments.get("kind"),
                accessibility=arguments.get("accessibility"),
                is_static=arguments.get("is_static"),
                include_inherited=arguments.get("include_inherited", False),
                limit=arguments.get("limit", 100),
                cursor=arguments.get("cursor"),
            )
        elif name == "resolve_member_id":
            result = resolve_member_id(context, member_id=arguments["member_id"])
        elif name == "get_member_signature":
            result = get_member_signature(context, member_id=arguments["member_id"])
        elif name == "get_overloads":
            result = get_overloads(context, member_id=arguments["member_id"])
        elif name == "search_members":
            result = search_members(
                context,
                query=arguments["query"],
                kind=arguments.get("kind"),
                namespace=arguments.get("namespace"),
                max_results=arguments.get("max_results", 20),
            )
        elif name == "get_decompiled_source":
            result = get_decompiled_source(context, member_id=arguments["member_id"])
        elif name == "get_source_slice":
            result = get_source_slice(
                context,
                member_id=arguments["member_id"],
                start_line=arguments.get("start_line", 1),
                end_line=arguments.get("end_line"),
                include_line_numbers=arguments.get("include_line_numbers", False),
                context_lines=arguments.get("context_lines", 0),
            )
        elif name == "generate_harmony_patch_skeleton":
            result = generate_harmony_patch_skeleton(
                context,
                member_id=arguments["member_id"],
                patch_kinds=arguments.get("patch_kinds", DEFAULT_PATCH_KINDS),
                include_reflection_targeting=arguments.get("include_reflection_targeting", True),
            )
        elif name == "generate_detour_stub":
            result = generate_detour_stub(context, member_id=arguments["member_id"])
        elif name == "generate_extension_method_wrapper":
            result = generate_extension_method_wrapper(context, member_id=arguments["member_id"])
        elif name == "find_base_types":
            result = find_base_types(
                context,
                type_id=arguments["type_id"],
                include_interfaces=arguments.get("include_interfaces", True),
            )
        elif name == "find_derived_types":
            result = find_derived_types(
                context,
                base_type_id=arguments["base_type_id"],
                transitive=arguments.get("transitive", True),
                limit=arguments.get("limit", 100),
                cursor=arguments.get("cursor"),
            )
        elif name == "get_implementations":
            result = get_implementations(
                context,
                member_id=arguments["member_id"],
                limit=arguments.get("limit", 100),
                cursor=arguments.get("cursor"),
            )
        elif name == "get_overrides":
            result = get_overrides(context, method_id=arguments["member_id"])
        elif name == "get_member_details":
            result = get_member_details(context, member_id=arguments["member_id"])
        elif name == "batch_get_decompiled_source":
            result = batch_get_decompiled_source(
                context,
                member_ids=arguments["member_ids"],
                max_total_chars=arguments.get("max_total_chars", 200_000),
            )
        elif name == "search_types":
            result = search_types(
                context,
                query=arguments["query"],
                regex=arguments.get("regex", False),
                namespace=arguments.get("namespace"),
                include_nested=arguments.get("include_nested", True),
                limit=arguments.get("limit", 50),
                cursor=arguments.get("cursor"),
            )
        elif name == "normalize_member_id":
            result = normalize_member_id(context, member_ref=arguments["member_ref"])
        else:
            result = error(f"Unknown tool: {name}", "UnknownTool")

    except KeyError as e:
        result = error(f"Missing required argument: {e.args[0]}", "InvalidArgument")

    return [TextContent(type="text", text=json.dumps(result, indent=2))]


async def _autoload(settings: Settings) -> None:
    """Load the assembly named by DECOMPILER_MCP_ASSEMBLY, if any."""
    if not settings.assembly:
        return
    result = await asyncio.to_thread(
        load_assembly,
        context,
        path=settings.assembly,
        storage_path=str(settings.store_path),
        max_files=settings.max_files,
        max_file_size=settings.max_file_size,
    )
    if result["status"] != "ok":
        logger.error("Could not load %s: %s", settings.assembly, result["message"])


async def run_server():
    """Run the MCP server."""
    from mcp.server.stdio import stdio_server

    settings = Settings.from_env()
    await _autoload(settings)

    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options()
        )


def main():
    """Main entry point."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    logger.info("Starting decompiler-mcp (store: %s)", settings.store_path)
    asyncio.run(run_server())


if __name__ == "__main__":
    main()
