"""Load and unload tools."""

from typing import Optional

from ..context import AssemblyContext
from ..loader import load_path
from ..response import try_execute
from ..storage import GraphStore


def load_assembly(
    context: AssemblyContext,
    path: str,
    storage_path: Optional[str] = None,
    max_files: int = 2000,
    max_file_size: int = 1024 * 1024,
) -> dict:
    """Load an assembly and make it the current one.

    Args:
        context: Assembly context to load into
        path: A .cs file, a folder of .cs files, a .json symbol dump, or the
            name of an assembly saved in the graph store
        storage_path: Custom graph store directory
        max_files: Maximum number of source files to parse
        max_file_size: Source files larger than this many bytes are skipped

    Returns:
        Envelope with the load session's mvid and counts
    """
    def run():
        store = GraphStore(base_path=storage_path)
        result = load_path(path, max_files=max_files, max_size=max_file_size, store=store)
        if not result.from_store:
            store.save(result.graph, result.sources, origin=result.origin)

        loaded = context.load(result.graph, path=result.origin, sources=result.sources)
        graph = loaded.graph
        return {
            "name": loaded.name,
            "mvid": loaded.mvid,
            "session": loaded.session,
            "assembly_path": loaded.path,
            "from_store": result.from_store,
            "types": graph.type_count,
            "methods": graph.method_count,
            "namespaces": len(graph.namespace_symbols),
            "files": len(result.sources),
        }

    return try_execute(run)


def unload(context: AssemblyContext) -> dict:
    """Drop the current assembly."""
    return try_execute(lambda: {"unloaded": context.unload()})
