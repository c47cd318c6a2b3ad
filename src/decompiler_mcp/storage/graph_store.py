"""Graph storage: JSON symbol dumps plus the raw source files they point into."""

import json
import logging
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from ..errors import AssemblyLoadError
from ..model import (
    Accessibility,
    Parameter,
    SourceSpan,
    Symbol,
    SymbolGraph,
    SymbolKind,
    TypeKind,
    TypeRef,
    TypeShape,
    build_graph,
)

logger = logging.getLogger(__name__)


FORMAT = "decompiler-mcp/graph"
FORMAT_VERSION = 1

_MEMBER_KINDS = {
    "method": SymbolKind.METHOD,
    "field": SymbolKind.FIELD,
    "property": SymbolKind.PROPERTY,
    "event": SymbolKind.EVENT,
}


# Serialization

def _type_ref_to_dict(type_ref: Optional[TypeRef]) -> Optional[dict]:
    if type_ref is None:
        return None
    shape = type_ref.shape
    if shape is TypeShape.GENERIC_PARAMETER:
        return {
            "generic_parameter": type_ref.full_name,
            "position": type_ref.position,
            "method": type_ref.method_owned,
        }
    if shape is TypeShape.ARRAY:
        return {"array": _type_ref_to_dict(type_ref.element_type), "rank": type_ref.rank}
    if shape is TypeShape.POINTER:
        return {"pointer": _type_ref_to_dict(type_ref.element_type)}
    data = {"named": type_ref.full_name}
    if type_ref.type_arguments:
        data["args"] = [_type_ref_to_dict(arg) for arg in type_ref.type_arguments]
    return data


def _type_ref_from_dict(data: Optional[dict]) -> Optional[TypeRef]:
    if data is None:
        return None
    if "generic_parameter" in data:
        return TypeRef.generic_parameter(
            data["generic_parameter"], data.get("position", 0), data.get("method", False)
        )
    if "array" in data:
        return TypeRef.array(_type_ref_from_dict(data["array"]), data.get("rank", 1))
    if "pointer" in data:
        return TypeRef.pointer(_type_ref_from_dict(data["pointer"]))
    if "named" in data:
        return TypeRef.named(data["named"], *(_type_ref_from_dict(a) for a in data.get("args", [])))
    raise ValueError(f"Unrecognized type reference: {data!r}")


def _span_to_dict(span: Optional[SourceSpan]) -> Optional[dict]:
    if span is None:
        return None
    return {
        "file": span.file,
        "line": span.line,
        "end_line": span.end_line,
        "byte_offset": span.byte_offset,
        "byte_length": span.byte_length,
    }


def _span_from_dict(data: Optional[dict]) -> Optional[SourceSpan]:
    if data is None:
        return None
    return SourceSpan(**data)


def _flags(symbol: Symbol) -> dict:
    return {
        "accessibility": symbol.accessibility.value,
        "is_static": symbol.is_static,
        "is_abstract": symbol.is_abstract,
        "is_virtual": symbol.is_virtual,
        "is_override": symbol.is_override,
    }


def _member_to_dict(member: Symbol) -> dict:
    data = {"kind": member.kind.name.lower(), "name": member.name, **_flags(member)}
    if member.parameters:
        data["parameters"] = [
            {"name": p.name, "type": _type_ref_to_dict(p.type), "modifier": p.modifier}
            for p in member.parameters
        ]
    data["return_type"] = _type_ref_to_dict(member.return_type)
    if member.type_parameters:
        data["type_parameters"] = list(member.type_parameters)
    if member.attributes:
        data["attributes"] = list(member.attributes)
    data["source"] = _span_to_dict(member.source)
    return data


def _type_to_dict(type_symbol: Symbol) -> dict:
    return {
        "name": type_symbol.name,
        "namespace": type_symbol.namespace,
        "kind": type_symbol.type_kind.value if type_symbol.type_kind else "class",
        **_flags(type_symbol),
        "type_parameters": list(type_symbol.type_parameters),
        "attributes": list(type_symbol.attributes),
        "base_types": [_type_ref_to_dict(b) for b in type_symbol.base_types],
        "members": [_member_to_dict(m) for m in type_symbol.members],
        "nested_types": [_type_to_dict(t) for t in type_symbol.nested_types],
        "source": _span_to_dict(type_symbol.source),
    }


def graph_to_dict(graph: SymbolGraph) -> dict:
    """Serialize a graph to the JSON dump format.

    Namespaces are not stored; they are derived again on load.
    """
    return {
        "format": FORMAT,
        "version": FORMAT_VERSION,
        "name": graph.name,
        "types": [_type_to_dict(t) for t in graph.type_symbols],
    }


def _member_from_dict(data: dict) -> Symbol:
    kind = _MEMBER_KINDS.get(data["kind"])
    if kind is None:
        raise ValueError(f"Unknown member kind: {data['kind']!r}")
    return Symbol(
        kind=kind,
        name=data["name"],
        accessibility=Accessibility(data.get("accessibility", "Public")),
        is_static=data.get("is_static", False),
        is_abstract=data.get("is_abstract", False),
        is_virtual=data.get("is_virtual", False),
        is_override=data.get("is_override", False),
        parameters=tuple(
            Parameter(p.get("name", ""), _type_ref_from_dict(p["type"]), p.get("modifier", ""))
            for p in data.get("parameters", [])
        ),
        return_type=_type_ref_from_dict(data.get("return_type")),
        type_parameters=tuple(data.get("type_parameters", [])),
        attributes=tuple(data.get("attributes", [])),
        source=_span_from_dict(data.get("source")),
    )


def _type_from_dict(data: dict) -> Symbol:
    return Symbol(
        kind=SymbolKind.TYPE,
        name=data["name"],
        namespace=data.get("namespace", ""),
        accessibility=Accessibility(data.get("accessibility", "Public")),
        is_static=data.get("is_static", False),
        is_abstract=data.get("is_abstract", False),
        is_virtual=data.get("is_virtual", False),
        type_parameters=tuple(data.get("type_parameters", [])),
        attributes=tuple(data.get("attributes", [])),
        type_kind=TypeKind(data.get("kind", "class")),
        base_types=tuple(_type_ref_from_dict(b) for b in data.get("base_types", [])),
        members=[_member_from_dict(m) for m in data.get("members", [])],
        nested_types=[_type_from_dict(t) for t in data.get("nested_types", [])],
        source=_span_from_dict(data.get("source")),
    )


def graph_from_dict(data: dict) -> SymbolGraph:
    """Rebuild a graph from a JSON dump.

    Raises:
        AssemblyLoadError: if the dump is not in the expected format
    """
    if data.get("format") != FORMAT:
        raise AssemblyLoadError(f"Not a symbol graph dump (format={data.get('format')!r})")
    if data.get("version") != FORMAT_VERSION:
        raise AssemblyLoadError(f"Unsupported dump version: {data.get('version')!r}")
    try:
        types = [_type_from_dict(t) for t in data["types"]]
    except (KeyError, TypeError, ValueError) as e:
        raise AssemblyLoadError(f"Malformed symbol graph dump: {e}") from e
    return build_graph(data.get("name", "assembly"), types)


# Store

def _slug(name: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]+", "-", name).strip("-") or "assembly"


class GraphStore:
    """Stores loaded graphs under a base directory.

    Layout: {slug}.json holds the graph dump and metadata; {slug}/ holds the
    source files the symbols' spans point into.
    """

    def __init__(self, base_path: Optional[str] = None):
        self.base_path = Path(base_path) if base_path else Path.home() / ".decompiler-mcp"
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _graph_path(self, name: str) -> Path:
        return self.base_path / f"{_slug(name)}.json"

    def _content_dir(self, name: str) -> Path:
        return self.base_path / _slug(name)

    def save(self, graph: SymbolGraph, sources: dict[str, str], origin: str = "") -> Path:
        """Save a graph and its source files, replacing an earlier save."""
        self.delete(graph.name)

        data = graph_to_dict(graph)
        data["origin"] = origin
        data["saved_at"] = datetime.now(timezone.utc).isoformat()
        data["source_files"] = sorted(sources)

        graph_path = self._graph_path(graph.name)
        with open(graph_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

        content_dir = self._content_dir(graph.name)
        for file_path, content in sources.items():
            dest = content_dir / file_path
            dest.parent.mkdir(parents=True, exist_ok=True)
            with open(dest, "w", encoding="utf-8", newline="") as f:
                f.write(content)

        logger.info("Saved %s to %s", graph.name, graph_path)
        return graph_path

    def load(self, name: str) -> Optional[tuple[SymbolGraph, dict[str, str]]]:
        """Load a saved graph and its sources, or None if nothing is saved."""
        graph_path = self._graph_path(name)
        if not graph_path.exists():
            return None

        with open(graph_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        graph = graph_from_dict(data)

        sources = {}
        content_dir = self._content_dir(name)
        for file_path in data.get("source_files", []):
            source_path = content_dir / file_path
            if source_path.exists():
                with open(source_path, "r", encoding="utf-8", newline="") as f:
                    sources[file_path] = f.read()
        return graph, sources

    def list_assemblies(self) -> list[dict]:
        assemblies = []
        for graph_file in sorted(self.base_path.glob("*.json")):
            try:
                with open(graph_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.warning("Skipping unreadable store entry %s: %s", graph_file.name, e)
                continue
            if data.get("format") != FORMAT:
                continue
            assemblies.append({
                "name": data.get("name"),
                "origin": data.get("origin", ""),
                "saved_at": data.get("saved_at"),
                "type_count": len(data.get("types", [])),
                "file_count": len(data.get("source_files", [])),
            })
        return assemblies

    def delete(self, name: str) -> bool:
        graph_path = self._graph_path(name)
        content_dir = self._content_dir(name)

        deleted = False
        if graph_path.exists():
            graph_path.unlink()
            deleted = True
        if content_dir.exists():
            shutil.rmtree(content_dir)
            deleted = True
        return deleted
