"""Type hierarchy queries over a loaded symbol graph.

Base types outside the assembly are only known by reference, so walks stop
at the first type the graph does not define.
"""

from typing import Optional

from .model import Symbol, SymbolGraph, SymbolKind, TypeKind, TypeRef


OBJECT = "System.Object"


def is_interface_ref(graph: SymbolGraph, type_ref: TypeRef) -> bool:
    symbol = graph.find_type(type_ref.full_name)
    if symbol is not None:
        return symbol.type_kind is TypeKind.INTERFACE
    # Outside the assembly: fall back to the IName convention
    name = type_ref.name
    return len(name) > 1 and name[0] == "I" and name[1].isupper()


def split_bases(graph: SymbolGraph, type_symbol: Symbol) -> tuple[Optional[TypeRef], list[TypeRef]]:
    """Direct base class and directly implemented interfaces of a type."""
    bases = list(type_symbol.base_types)
    if type_symbol.type_kind in (TypeKind.ENUM, TypeKind.DELEGATE):
        return None, []
    if type_symbol.type_kind is not TypeKind.CLASS:
        return None, bases
    # C# lists the base class first
    if bases and not is_interface_ref(graph, bases[0]):
        return bases[0], bases[1:]
    return None, bases


def base_class_chain(graph: SymbolGraph, type_symbol: Symbol) -> list[TypeRef]:
    """Base classes from the direct base upward, System.Object excluded."""
    chain = []
    seen = {id(type_symbol)}
    current = type_symbol
    while current is not None:
        base, _ = split_bases(graph, current)
        if base is None or base.full_name == OBJECT:
            break
        chain.append(base)
        current = graph.find_type(base.full_name)
        if current is not None and id(current) in seen:
            break
        if current is not None:
            seen.add(id(current))
    return chain


def all_interfaces(graph: SymbolGraph, type_symbol: Symbol) -> list[TypeRef]:
    """Interfaces implemented directly, through base classes or through other interfaces."""
    found: dict[str, TypeRef] = {}
    pending = [type_symbol]
    seen = set()
    while pending:
        current = pending.pop(0)
        if id(current) in seen:
            continue
        seen.add(id(current))

        base, interfaces = split_bases(graph, current)
        for interface in interfaces:
            found.setdefault(interface.full_name, interface)
        for ref in ([base] if base is not None else []) + interfaces:
            symbol = graph.find_type(ref.full_name)
            if symbol is not None:
                pending.append(symbol)
    return list(found.values())


def derived_types(graph: SymbolGraph, type_symbol: Symbol, transitive: bool = True) -> list[Symbol]:
    """Types of the graph listing `type_symbol` as a base, sorted by name."""
    children: dict[str, list[Symbol]] = {}
    for candidate in graph.types():
        for base in candidate.base_types:
            children.setdefault(base.full_name, []).append(candidate)

    result = []
    seen = {id(type_symbol)}
    pending = [type_symbol]
    while pending:
        current = pending.pop(0)
        for sub in children.get(current.full_name, []):
            if id(sub) in seen:
                continue
            seen.add(id(sub))
            result.append(sub)
            if transitive:
                pending.append(sub)
    return sorted(result, key=lambda t: t.full_name)


def implementors(graph: SymbolGraph, interface: Symbol) -> list[Symbol]:
    """Non-interface types implementing an interface, directly or inherited."""
    result = []
    for candidate in graph.types():
        if candidate.type_kind is TypeKind.INTERFACE:
            continue
        if any(ref.full_name == interface.full_name for ref in all_interfaces(graph, candidate)):
            result.append(candidate)
    return sorted(result, key=lambda t: t.full_name)


def same_signature(a: Symbol, b: Symbol) -> bool:
    """Parameter lists match; positions typed by generic parameters match anything."""
    if len(a.parameters) != len(b.parameters) or len(a.type_parameters) != len(b.type_parameters):
        return False
    for left, right in zip(a.parameters, b.parameters):
        if left.is_by_ref != right.is_by_ref:
            return False
        if left.type.contains_generic_parameters() or right.type.contains_generic_parameters():
            continue
        if left.type.id_string() != right.type.id_string():
            return False
    return True


def _methods_named(type_symbol: Symbol, names: tuple[str, ...]) -> list[Symbol]:
    return [
        m for m in type_symbol.members
        if m.kind is SymbolKind.METHOD and m.name in names
    ]


def base_definition(graph: SymbolGraph, method: Symbol) -> Optional[Symbol]:
    """The virtual method an override ultimately overrides, if the graph defines it."""
    if not method.is_override or method.declaring_type is None:
        return None
    found = None
    for base_ref in base_class_chain(graph, method.declaring_type):
        base = graph.find_type(base_ref.full_name)
        if base is None:
            break
        match = next(
            (m for m in _methods_named(base, (method.name,)) if m.is_virtual and same_signature(m, method)),
            None,
        )
        if match is not None:
            found = match
            if not match.is_override:
                break
    return found


def find_overrides(graph: SymbolGraph, method: Symbol) -> list[Symbol]:
    """Overrides of a method in types derived from its declaring type."""
    if method.declaring_type is None or not method.is_virtual:
        return []
    return [
        m
        for derived in derived_types(graph, method.declaring_type)
        for m in _methods_named(derived, (method.name,))
        if m.is_override and same_signature(m, method)
    ]


def interface_method_implementations(graph: SymbolGraph, method: Symbol) -> list[Symbol]:
    """Methods implementing an interface method, implicitly or explicitly."""
    interface = method.declaring_type
    names = (method.name, f"{interface.full_name}.{method.name}")
    return [
        m
        for implementor in implementors(graph, interface)
        for m in _methods_named(implementor, names)
        if not m.is_static and same_signature(m, method)
    ]
