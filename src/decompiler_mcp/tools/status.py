"""Server status tool."""

from typing import Optional

from ..context import AssemblyContext
from ..response import try_execute
from ..storage import GraphStore


def status(context: AssemblyContext, storage_path: Optional[str] = None) -> dict:
    """Report whether an assembly is loaded, its counts, and saved assemblies."""
    def run():
        loaded = context.current
        result = {"loaded": loaded is not None}
        if loaded is not None:
            graph = loaded.graph
            result.update({
                "name": loaded.name,
                "assembly_path": loaded.path,
                "mvid": loaded.mvid,
                "session": loaded.session,
                "loaded_at": loaded.loaded_at,
                "types": graph.type_count,
                "methods": graph.method_count,
                "namespaces": len(graph.namespace_symbols),
                "symbols": len(graph.index),
                "files": len(loaded.sources),
            })
        result["stored"] = GraphStore(base_path=storage_path).list_assemblies()
        return result

    return try_execute(run)
