"""Turns a path into a symbol graph: JSON dumps, single .cs files or folders."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .errors import AssemblyLoadError
from .model import SymbolGraph
from .parser import load_source_tree
from .storage import GraphStore, graph_from_dict

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    graph: SymbolGraph
    sources: dict[str, str] = field(default_factory=dict)
    origin: str = ""
    from_store: bool = False


def load_path(
    path: str,
    max_files: int = 2000,
    max_size: int = 1024 * 1024,
    store: Optional[GraphStore] = None,
) -> LoadResult:
    """Load a graph from a path, falling back to a stored assembly name.

    Raises:
        AssemblyLoadError: if the path cannot be loaded
    """
    if not path or not path.strip():
        raise AssemblyLoadError("No path given")
    resolved = Path(path.strip()).expanduser()

    if not resolved.exists():
        if store is not None:
            stored = store.load(path.strip())
            if stored is not None:
                graph, sources = stored
                logger.info("Loaded %s from the graph store", graph.name)
                return LoadResult(graph, sources, origin=path.strip(), from_store=True)
        raise AssemblyLoadError(f"Path not found: {path}")

    origin = str(resolved.resolve())
    if resolved.is_file() and resolved.suffix.lower() == ".json":
        try:
            with open(resolved, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise AssemblyLoadError(f"Cannot read symbol dump {path}: {e}") from e
        return LoadResult(graph_from_dict(data), origin=origin)

    if resolved.is_file() and resolved.suffix.lower() in (".dll", ".exe"):
        raise AssemblyLoadError(
            f"Binary assemblies are not read directly: export {resolved.name} "
            "to a C# project or a symbol dump first"
        )
    if resolved.is_file() and resolved.suffix.lower() != ".cs":
        raise AssemblyLoadError(f"Unsupported input: {path}")

    tree = load_source_tree(str(resolved), max_files=max_files, max_size=max_size)
    if tree.error_files:
        logger.warning("%d files had syntax errors: %s", len(tree.error_files), ", ".join(tree.error_files[:5]))
    return LoadResult(tree.graph, tree.sources, origin=origin)
