"""Symbol graph of one loaded assembly and its id index."""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from ..errors import SymbolCollisionError
from .symbols import Symbol, SymbolKind, make_symbol_id

logger = logging.getLogger(__name__)


@dataclass
class SymbolGraph:
    """All symbols of one assembly.

    Built once per load by build_graph() and never mutated afterwards.
    """
    name: str                                            # Assembly name
    type_symbols: list[Symbol]                           # Top-level types; nested ones hang off nested_types
    namespace_symbols: list[Symbol] = field(default_factory=list)
    index: Mapping[str, Symbol] = field(default_factory=dict, repr=False)
    _types_by_name: Mapping[str, Symbol] = field(default_factory=dict, repr=False)

    def types(self) -> Iterator[Symbol]:
        """All type symbols, nested ones included, in declaration order."""
        stack = list(reversed(self.type_symbols))
        while stack:
            type_symbol = stack.pop()
            yield type_symbol
            stack.extend(reversed(type_symbol.nested_types))

    def namespaces(self) -> list[Symbol]:
        return list(self.namespace_symbols)

    def all_symbols(self) -> Iterator[Symbol]:
        yield from self.namespace_symbols
        for type_symbol in self.types():
            yield type_symbol
            yield from type_symbol.members

    def find_type(self, full_name: str) -> Optional[Symbol]:
        return self._types_by_name.get(full_name)

    def get(self, symbol_id: str) -> Optional[Symbol]:
        return self.index.get(symbol_id)

    @property
    def type_count(self) -> int:
        return len(self._types_by_name)

    @property
    def method_count(self) -> int:
        return sum(
            1 for t in self.types() for m in t.members if m.kind is SymbolKind.METHOD
        )


def namespace_chain(namespace: str) -> list[str]:
    """Every dotted prefix of a namespace: A.B.C -> [A, A.B, A.B.C]."""
    if not namespace:
        return []
    parts = namespace.split(".")
    return [".".join(parts[:i]) for i in range(1, len(parts) + 1)]


def in_namespace(namespace: str, container: str) -> bool:
    """Whether `namespace` is `container` or nested inside it."""
    return namespace == container or namespace.startswith(container + ".")


def _wire(type_symbol: Symbol, declaring: Optional[Symbol]) -> None:
    """Point members and nested types back at their declaring type."""
    type_symbol.declaring_type = declaring
    if declaring is not None:
        type_symbol.namespace = declaring.namespace
    for member in type_symbol.members:
        member.declaring_type = type_symbol
        member.namespace = type_symbol.namespace
    for nested in type_symbol.nested_types:
        _wire(nested, type_symbol)


def build_graph(name: str, type_symbols: list[Symbol]) -> SymbolGraph:
    """Wire back-references, derive namespaces and build the id index.

    Raises:
        SymbolCollisionError: if two distinct symbols produce the same id
    """
    for type_symbol in type_symbols:
        _wire(type_symbol, None)

    graph = SymbolGraph(name=name, type_symbols=list(type_symbols))

    namespaces: dict[str, Symbol] = {}
    for type_symbol in graph.types():
        for ns in namespace_chain(type_symbol.namespace):
            if ns not in namespaces:
                namespaces[ns] = Symbol(kind=SymbolKind.NAMESPACE, name=ns, namespace=ns)
    graph.namespace_symbols = [namespaces[ns] for ns in sorted(namespaces)]

    index: dict[str, Symbol] = {}
    types_by_name: dict[str, Symbol] = {}
    for symbol in graph.all_symbols():
        symbol_id = make_symbol_id(symbol)
        existing = index.get(symbol_id)
        if existing is not None and existing is not symbol:
            raise SymbolCollisionError(f"Two symbols share the id {symbol_id}")
        index[symbol_id] = symbol
        if symbol.kind is SymbolKind.TYPE:
            types_by_name[symbol.full_name] = symbol

    graph.index = MappingProxyType(index)
    graph._types_by_name = MappingProxyType(types_by_name)

    logger.debug(
        "Built graph %s: %d namespaces, %d types, %d symbols",
        name, len(namespaces), len(types_by_name), len(index),
    )
    return graph
