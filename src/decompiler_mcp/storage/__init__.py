"""Storage package for symbol graphs."""

from .graph_store import GraphStore, graph_from_dict, graph_to_dict

__all__ = ["GraphStore", "graph_from_dict", "graph_to_dict"]
