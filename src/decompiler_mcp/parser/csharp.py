"""C# source loader: builds a symbol graph from .cs files using tree-sitter.

Meant for assemblies exported to a C# project by an IL decompiler. Types are
collected in a first pass over every file; member signatures are resolved in
a second pass, so a member may reference a type declared in any file.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from tree_sitter_language_pack import get_parser

from ..errors import AssemblyLoadError
from ..model import (
    KEYWORD_ALIASES,
    Accessibility,
    Parameter,
    SourceSpan,
    Symbol,
    SymbolGraph,
    SymbolKind,
    TypeKind,
    TypeRef,
    build_graph,
    make_symbol_id,
    namespace_chain,
)
from .type_syntax import TypeSyntax, TypeSyntaxError, parse_type_syntax
from .well_known import WELL_KNOWN_TYPES, WELL_KNOWN_BY_NAME

logger = logging.getLogger(__name__)


CSHARP_EXTENSIONS = (".cs",)

# Path fragments of build output and generated code
SKIP_PATTERNS = [
    "bin/", "obj/", ".git/", ".vs/", "packages/", "node_modules/",
    ".g.cs", ".g.i.cs", ".designer.cs", ".Designer.cs",
    ".AssemblyAttributes.cs", ".AssemblyInfo.cs",
]

TYPE_DECLARATIONS = {
    "class_declaration": TypeKind.CLASS,
    "struct_declaration": TypeKind.STRUCT,
    "interface_declaration": TypeKind.INTERFACE,
    "enum_declaration": TypeKind.ENUM,
    "record_declaration": TypeKind.CLASS,
    "record_struct_declaration": TypeKind.STRUCT,
    "delegate_declaration": TypeKind.DELEGATE,
}

MODIFIERS = {
    "public", "private", "protected", "internal", "static", "abstract",
    "virtual", "override", "sealed", "readonly", "const", "extern", "new",
    "partial", "unsafe", "async", "volatile", "required", "file",
}

PARAMETER_MODIFIERS = ("ref", "out", "in", "params", "this")

OPERATOR_NAMES = {
    ("+", 1): "op_UnaryPlus", ("-", 1): "op_UnaryNegation", ("!", 1): "op_LogicalNot",
    ("~", 1): "op_OnesComplement", ("++", 1): "op_Increment", ("--", 1): "op_Decrement",
    ("true", 1): "op_True", ("false", 1): "op_False",
    ("+", 2): "op_Addition", ("-", 2): "op_Subtraction", ("*", 2): "op_Multiply",
    ("/", 2): "op_Division", ("%", 2): "op_Modulus", ("&", 2): "op_BitwiseAnd",
    ("|", 2): "op_BitwiseOr", ("^", 2): "op_ExclusiveOr", ("<<", 2): "op_LeftShift",
    (">>", 2): "op_RightShift", (">>>", 2): "op_UnsignedRightShift",
    ("==", 2): "op_Equality", ("!=", 2): "op_Inequality", ("<", 2): "op_LessThan",
    (">", 2): "op_GreaterThan", ("<=", 2): "op_LessThanOrEqual", (">=", 2): "op_GreaterThanOrEqual",
}

_VALUE_KEYWORDS = {
    full_name for keyword, full_name in KEYWORD_ALIASES.items()
    if keyword not in ("object", "string", "void")
}

_OBJECT = TypeRef.named("System.Object")
_VOID = TypeRef.named("System.Void")


@dataclass
class SourceTree:
    """Result of loading C# sources."""
    graph: SymbolGraph
    sources: dict[str, str]                         # Relative path -> content
    files: list[str] = field(default_factory=list)
    error_files: list[str] = field(default_factory=list)


@dataclass
class _Scope:
    """Lexical scope of a declaration: file, namespace and usings."""
    file: str
    source_bytes: bytes
    namespace: str = ""
    usings: tuple[str, ...] = ()
    aliases: dict[str, str] = field(default_factory=dict)


@dataclass
class _PendingType:
    symbol: Symbol
    node: object
    scope: _Scope


def _text(node, source_bytes: bytes) -> str:
    return source_bytes[node.start_byte:node.end_byte].decode("utf-8")


def _span(node, scope: _Scope) -> SourceSpan:
    return SourceSpan(
        file=scope.file,
        line=node.start_point[0] + 1,
        end_line=node.end_point[0] + 1,
        byte_offset=node.start_byte,
        byte_length=node.end_byte - node.start_byte,
    )


def _modifiers(node, source_bytes: bytes) -> set[str]:
    found = set()
    for child in node.children:
        if child.type == "modifier":
            found.add(_text(child, source_bytes).strip())
        elif child.type in MODIFIERS:
            found.add(child.type)
    return found


def _attributes(node, source_bytes: bytes) -> tuple[str, ...]:
    found = []
    for child in node.children:
        if child.type == "attribute_list":
            found.extend(_text(a, source_bytes) for a in child.named_children if a.type == "attribute")
    return tuple(found)


def _accessibility(modifiers: set[str], default: Accessibility) -> Accessibility:
    if "protected" in modifiers and "internal" in modifiers:
        return Accessibility.PROTECTED_INTERNAL
    if "private" in modifiers and "protected" in modifiers:
        return Accessibility.PRIVATE_PROTECTED
    if "public" in modifiers:
        return Accessibility.PUBLIC
    if "protected" in modifiers:
        return Accessibility.PROTECTED
    if "internal" in modifiers or "file" in modifiers:
        return Accessibility.INTERNAL
    if "private" in modifiers:
        return Accessibility.PRIVATE
    return default


def _type_parameter_names(node, source_bytes: bytes) -> tuple[str, ...]:
    parameters = node.child_by_field_name("type_parameters")
    if parameters is None:
        return ()
    names = []
    for child in parameters.named_children:
        if child.type != "type_parameter":
            continue
        name = child.child_by_field_name("name")
        if name is None:
            identifiers = [c for c in child.named_children if c.type == "identifier"]
            name = identifiers[-1] if identifiers else None
        if name is not None:
            names.append(_text(name, source_bytes))
    return tuple(names)


def _first_child(node, node_type: str):
    return next((c for c in node.named_children if c.type == node_type), None)


def _namespace_name(node):
    return node.child_by_field_name("name") or next(
        (c for c in node.named_children if c.type in ("qualified_name", "identifier")), None
    )


def _type_kind(node) -> TypeKind:
    kind = TYPE_DECLARATIONS[node.type]
    if node.type == "record_declaration" and any(c.type == "struct" for c in node.children):
        return TypeKind.STRUCT
    return kind


class CSharpLoader:
    """Collects declarations from C# files and builds one symbol graph."""

    def __init__(self, name: str):
        self.name = name
        self.parser = get_parser("csharp")
        self.top_level: list[Symbol] = []
        self.types_by_name: dict[str, Symbol] = {}
        self.pending: list[_PendingType] = []
        self.sources: dict[str, str] = {}
        self.error_files: list[str] = []

    # Pass 1: types

    def add_file(self, path: str, content: str) -> None:
        source_bytes = content.encode("utf-8")
        tree = self.parser.parse(source_bytes)
        if tree.root_node.has_error:
            self.error_files.append(path)
            logger.debug("Syntax errors in %s; keeping what parsed", path)
        self.sources[path] = content
        self._walk_namespace_members(tree.root_node, _Scope(file=path, source_bytes=source_bytes))

    def _walk_namespace_members(self, node, scope: _Scope) -> None:
        for child in node.children:
            if child.type == "using_directive":
                scope = self._add_using(child, scope)
            elif child.type == "namespace_declaration":
                name = _namespace_name(child)
                body = child.child_by_field_name("body") or _first_child(child, "declaration_list")
                if name is None or body is None:
                    continue
                self._walk_namespace_members(body, self._enter_namespace(scope, name))
            elif child.type == "file_scoped_namespace_declaration":
                name = _namespace_name(child)
                if name is None:
                    continue
                # Applies to the rest of the file, whether the grammar nests
                # the declarations or leaves them as siblings
                scope = self._enter_namespace(scope, name)
                self._walk_namespace_members(child, scope)
            elif child.type in TYPE_DECLARATIONS:
                self._add_type(child, scope, None)
            elif child.named_child_count and child.type.startswith("preproc"):
                self._walk_namespace_members(child, scope)

    def _enter_namespace(self, scope: _Scope, name_node) -> _Scope:
        name = _text(name_node, scope.source_bytes).replace(" ", "")
        namespace = f"{scope.namespace}.{name}" if scope.namespace else name
        return _Scope(
            file=scope.file,
            source_bytes=scope.source_bytes,
            namespace=namespace,
            usings=scope.usings,
            aliases=dict(scope.aliases),
        )

    def _add_using(self, node, scope: _Scope) -> _Scope:
        text = _text(node, scope.source_bytes).strip().rstrip(";").strip()
        words = text.split(None, 1)
        if words and words[0] == "global":
            text = words[1] if len(words) > 1 else ""
        text = text[len("using"):].strip() if text.startswith("using") else text
        if text.startswith("static ") or not text:
            return scope

        usings = scope.usings
        aliases = dict(scope.aliases)
        if "=" in text:
            alias, target = (part.strip() for part in text.split("=", 1))
            aliases[alias] = target
        else:
            usings = usings + (text.replace(" ", "").replace("global::", ""),)
        return _Scope(
            file=scope.file,
            source_bytes=scope.source_bytes,
            namespace=scope.namespace,
            usings=usings,
            aliases=aliases,
        )

    def _add_type(self, node, scope: _Scope, declaring: Optional[Symbol]) -> None:
        source_bytes = scope.source_bytes
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        type_parameters = _type_parameter_names(node, source_bytes)
        name = _text(name_node, source_bytes)
        if type_parameters:
            name += f"`{len(type_parameters)}"

        if declaring is not None:
            full_name = f"{declaring.full_name}+{name}"
        else:
            full_name = f"{scope.namespace}.{name}" if scope.namespace else name

        modifiers = _modifiers(node, source_bytes)
        kind = _type_kind(node)

        symbol = self.types_by_name.get(full_name)
        if symbol is None:
            default = Accessibility.INTERNAL if declaring is None else Accessibility.PRIVATE
            symbol = Symbol(
                kind=SymbolKind.TYPE,
                name=name,
                namespace=scope.namespace if declaring is None else declaring.namespace,
                declaring_type=declaring,
                accessibility=_accessibility(modifiers, default),
                is_static="static" in modifiers,
                is_abstract="abstract" in modifiers or kind is TypeKind.INTERFACE,
                type_parameters=type_parameters,
                attributes=_attributes(node, source_bytes),
                type_kind=kind,
                source=_span(node, scope),
            )
            self.types_by_name[full_name] = symbol
            if declaring is None:
                self.top_level.append(symbol)
            else:
                declaring.nested_types.append(symbol)
        elif "partial" in modifiers:
            # Later parts of a partial type may carry the modifiers
            if symbol.accessibility in (Accessibility.INTERNAL, Accessibility.PRIVATE):
                default = symbol.accessibility
                symbol.accessibility = _accessibility(modifiers, default)
            symbol.is_static = symbol.is_static or "static" in modifiers
            symbol.is_abstract = symbol.is_abstract or "abstract" in modifiers
            symbol.attributes += _attributes(node, source_bytes)
        else:
            logger.warning("Duplicate type %s in %s; merging members", full_name, scope.file)

        self.pending.append(_PendingType(symbol, node, scope))

        body = node.child_by_field_name("body")
        if body is not None and node.type != "enum_declaration":
            self._walk_type_members(body, scope, symbol)

    def _walk_type_members(self, body, scope: _Scope, declaring: Symbol) -> None:
        for child in body.children:
            if child.type in TYPE_DECLARATIONS:
                self._add_type(child, scope, declaring)
            elif child.named_child_count and child.type.startswith("preproc"):
                self._walk_type_members(child, scope, declaring)

    # Pass 2: members

    def build(self) -> SourceTree:
        for pending in self.pending:
            _MemberCollector(self, pending).collect()
        for type_symbol in self.types_by_name.values():
            _add_default_constructor(type_symbol)

        graph = build_graph(self.name, self.top_level)
        logger.info(
            "Parsed %d files of %s: %d types, %d methods",
            len(self.sources), self.name, graph.type_count, graph.method_count,
        )
        return SourceTree(
            graph=graph,
            sources=dict(self.sources),
            files=sorted(self.sources),
            error_files=list(self.error_files),
        )


def _add_default_constructor(type_symbol: Symbol) -> None:
    """Classes without an instance constructor get the compiler's default one."""
    if type_symbol.type_kind is not TypeKind.CLASS or type_symbol.is_static:
        return
    if any(m.name == ".ctor" for m in type_symbol.members):
        return
    type_symbol.members.append(Symbol(
        kind=SymbolKind.METHOD,
        name=".ctor",
        declaring_type=type_symbol,
        accessibility=Accessibility.PROTECTED if type_symbol.is_abstract else Accessibility.PUBLIC,
        return_type=_VOID,
    ))


class _TypeResolver:
    """Maps type syntax to TypeRefs from one declaration's point of view."""

    def __init__(self, loader: CSharpLoader, scope: _Scope, owner: Symbol, method_type_parameters=()):
        self.loader = loader
        self.scope = scope
        self.owner = owner
        self.method_type_parameters = tuple(method_type_parameters)

        self.chain = []
        current = owner
        while current is not None:
            self.chain.insert(0, current)
            current = current.declaring_type
        self.type_parameters = [name for t in self.chain for name in t.type_parameters]

    def resolve_text(self, text: str) -> TypeRef:
        try:
            return self.resolve(parse_type_syntax(text))
        except TypeSyntaxError as e:
            logger.debug("Unparsed type %r in %s: %s", text, self.scope.file, e)
            return _OBJECT

    def resolve_node(self, node) -> TypeRef:
        if node is None:
            return _OBJECT
        return self.resolve_text(_text(node, self.scope.source_bytes))

    def resolve(self, syntax: TypeSyntax) -> TypeRef:
        if syntax.is_tuple:
            elements = [self.resolve(e) for e in syntax.tuple_elements]
            return TypeRef.named(f"System.ValueTuple`{len(elements)}", *elements)
        if syntax.rank:
            return TypeRef.array(self.resolve(syntax.element), syntax.rank)
        if syntax.pointer:
            return TypeRef.pointer(self.resolve(syntax.element))
        if syntax.nullable:
            inner = self.resolve(syntax.element)
            if self._is_value_type(inner):
                return TypeRef.named("System.Nullable`1", inner)
            return inner

        simple = syntax.simple
        if simple is not None:
            if simple in self.method_type_parameters:
                return TypeRef.generic_parameter(simple, self.method_type_parameters.index(simple), True)
            if simple in self.type_parameters:
                # Innermost declaration wins when names shadow
                position = len(self.type_parameters) - 1 - self.type_parameters[::-1].index(simple)
                return TypeRef.generic_parameter(simple, position)
            if simple in KEYWORD_ALIASES:
                return TypeRef.named(KEYWORD_ALIASES[simple])
            if simple == "dynamic":
                return _OBJECT

        arguments = [self.resolve(arg) for part in syntax.parts for arg in part.arguments]
        full_name = self._lookup(syntax.parts)
        if full_name is None:
            full_name = ".".join(_arity_name(part) for part in syntax.parts)
            logger.debug("Unresolved type %s in %s", full_name, self.scope.file)
            return TypeRef.named(full_name, *arguments)

        target = self.loader.types_by_name.get(full_name)
        if target is not None:
            outer_count = sum(len(t.type_parameters) for t in _outer_chain(target))
            if len(arguments) < outer_count + len(target.type_parameters):
                # Nested types of generic types are implicitly instantiated
                # over the enclosing type's parameters
                implicit = [
                    TypeRef.generic_parameter(name, i)
                    for i, name in enumerate(self.type_parameters[:outer_count])
                ]
                arguments = implicit + arguments
        return TypeRef.named(full_name, *arguments)

    def _is_value_type(self, type_ref: TypeRef) -> bool:
        if type_ref.full_name in _VALUE_KEYWORDS:
            return True
        declared = self.loader.types_by_name.get(type_ref.full_name)
        if declared is not None:
            return declared.type_kind in (TypeKind.STRUCT, TypeKind.ENUM)
        return WELL_KNOWN_TYPES.get(type_ref.full_name) == "struct"

    def _known(self, full_name: str) -> bool:
        return full_name in self.loader.types_by_name or full_name in WELL_KNOWN_TYPES

    def _qualify(self, prefix: str, parts: list[str]) -> Optional[str]:
        """Find a known type for prefix + parts, splitting namespace from nesting."""
        for split in range(len(parts)):
            namespace = ".".join(filter(None, [prefix, *parts[:split]]))
            nested = "+".join(parts[split:])
            candidate = f"{namespace}.{nested}" if namespace else nested
            if self._known(candidate):
                return candidate
        return None

    def _lookup(self, parts) -> Optional[str]:
        names = [_arity_name(part) for part in parts]

        alias = self.scope.aliases.get(parts[0].name)
        if alias is not None:
            alias_parts = alias.replace("global::", "").split(".")
            found = self._qualify("", alias_parts + names[1:])
            if found:
                return found

        # Nested types of the enclosing types, innermost first
        for enclosing in reversed(self.chain):
            candidate = f"{enclosing.full_name}+{'+'.join(names)}"
            if candidate in self.loader.types_by_name:
                return candidate

        for namespace in reversed(namespace_chain(self.scope.namespace)):
            found = self._qualify(namespace, names)
            if found:
                return found
        found = self._qualify("", names)
        if found:
            return found

        for using in self.scope.usings:
            found = self._qualify(using, names)
            if found:
                return found

        if len(names) == 1:
            return WELL_KNOWN_BY_NAME.get(names[0])
        return None


def _arity_name(part) -> str:
    return f"{part.name}`{len(part.arguments)}" if part.arguments else part.name


def _outer_chain(type_symbol: Symbol) -> list[Symbol]:
    chain = []
    current = type_symbol.declaring_type
    while current is not None:
        chain.insert(0, current)
        current = current.declaring_type
    return chain


class _MemberCollector:
    """Extracts members of one type declaration (one part of a partial type)."""

    def __init__(self, loader: CSharpLoader, pending: _PendingType):
        self.loader = loader
        self.owner = pending.symbol
        self.node = pending.node
        self.scope = pending.scope
        self.source_bytes = pending.scope.source_bytes
        self.resolver = _TypeResolver(loader, pending.scope, pending.symbol)
        self.seen = {make_symbol_id(m) for m in self.owner.members}

    @property
    def default_accessibility(self) -> Accessibility:
        if self.owner.type_kind in (TypeKind.INTERFACE, TypeKind.ENUM):
            return Accessibility.PUBLIC
        return Accessibility.PRIVATE

    def collect(self) -> None:
        node = self.node
        self.owner.base_types = self.owner.base_types or self._base_types()

        if node.type == "delegate_declaration":
            self._add_delegate_invoke()
            return
        if node.type in ("record_declaration", "record_struct_declaration"):
            self._add_record_parameters()

        body = node.child_by_field_name("body")
        if body is None:
            return
        if node.type == "enum_declaration":
            self._collect_enum_members(body)
        else:
            self._collect_members(body)

    def _collect_members(self, body) -> None:
        handlers = {
            "method_declaration": self._add_method,
            "constructor_declaration": self._add_constructor,
            "destructor_declaration": self._add_destructor,
            "operator_declaration": self._add_operator,
            "conversion_operator_declaration": self._add_conversion,
            "field_declaration": self._add_fields,
            "event_field_declaration": self._add_fields,
            "event_declaration": self._add_event,
            "property_declaration": self._add_property,
            "indexer_declaration": self._add_indexer,
        }
        for child in body.children:
            handler = handlers.get(child.type)
            if handler is not None:
                handler(child)
            elif child.named_child_count and child.type.startswith("preproc"):
                self._collect_members(child)

    def _add(self, member: Symbol) -> None:
        member.declaring_type = self.owner
        member.namespace = self.owner.namespace
        member_id = make_symbol_id(member)
        if member_id in self.seen:
            logger.warning("Skipping duplicate member %s in %s", member_id, self.scope.file)
            return
        self.seen.add(member_id)
        self.owner.members.append(member)

    def _base_types(self) -> tuple[TypeRef, ...]:
        bases = []
        for child in self.node.children:
            if child.type != "base_list":
                continue
            for base in child.named_children:
                if base.type == "argument_list":
                    continue
                if base.type == "primary_constructor_base_type":
                    # record Derived(int X) : Base(X)
                    base = base.child_by_field_name("type") or base.named_children[0]
                bases.append(self.resolver.resolve_node(base))
        return tuple(bases)

    def _member(self, node, kind: SymbolKind, name: str, **kwargs) -> Symbol:
        modifiers = _modifiers(node, self.source_bytes)
        interface = self.owner.type_kind is TypeKind.INTERFACE
        explicit = node.child_by_field_name("explicit_interface_specifier") or next(
            (c for c in node.named_children if c.type == "explicit_interface_specifier"), None
        )
        if explicit is not None:
            interface_name = _text(explicit, self.source_bytes).rstrip(".").strip()
            interface_ref = self.resolver.resolve_text(interface_name)
            name = f"{interface_ref.full_name}.{name}"
            accessibility = Accessibility.PRIVATE
        else:
            accessibility = _accessibility(modifiers, self.default_accessibility)

        has_body = node.child_by_field_name("body") is not None
        is_abstract = "abstract" in modifiers or (
            interface and kind is SymbolKind.METHOD and not has_body and "static" not in modifiers
        )
        return Symbol(
            kind=kind,
            name=name,
            accessibility=accessibility,
            is_static="static" in modifiers or "const" in modifiers,
            is_abstract=is_abstract,
            is_virtual=is_abstract or bool(modifiers & {"virtual", "override"}),
            is_override="override" in modifiers,
            attributes=_attributes(node, self.source_bytes),
            source=_span(node, self.scope),
            **kwargs,
        )

    def _parameters(self, node, resolver: _TypeResolver) -> tuple[Parameter, ...]:
        if node is None:
            return ()
        parameters = []
        for child in node.named_children:
            if child.type not in ("parameter", "parameter_array"):
                continue
            name_node = child.child_by_field_name("name")
            type_node = child.child_by_field_name("type")
            modifier = ""
            for part in child.children:
                if part == type_node or part == name_node:
                    break
                text = _text(part, self.source_bytes).strip()
                if text in PARAMETER_MODIFIERS:
                    modifier = text
            if child.type == "parameter_array":
                modifier = "params"
            if type_node is None:
                candidates = [
                    c for c in child.named_children
                    if c != name_node and c.type not in ("attribute_list", "modifier", "parameter_modifier", "equals_value_clause")
                ]
                type_node = candidates[0] if candidates else None
                if name_node is None and len(candidates) > 1 and candidates[-1].type == "identifier":
                    name_node = candidates[-1]
            param_type = resolver.resolve_node(type_node)
            if modifier == "this":
                modifier = ""
            parameters.append(Parameter(
                name=_text(name_node, self.source_bytes) if name_node is not None else "",
                type=param_type,
                modifier=modifier,
            ))
        return tuple(parameters)

    def _return_type(self, node, resolver: _TypeResolver) -> TypeRef:
        type_node = node.child_by_field_name("returns") or node.child_by_field_name("type")
        return resolver.resolve_node(type_node)

    def _add_method(self, node) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        type_parameters = _type_parameter_names(node, self.source_bytes)
        resolver = _TypeResolver(self.loader, self.scope, self.owner, type_parameters)
        self._add(self._member(
            node,
            SymbolKind.METHOD,
            _text(name_node, self.source_bytes),
            type_parameters=type_parameters,
            parameters=self._parameters(node.child_by_field_name("parameters"), resolver),
            return_type=self._return_type(node, resolver),
        ))

    def _add_constructor(self, node) -> None:
        modifiers = _modifiers(node, self.source_bytes)
        static = "static" in modifiers
        member = self._member(
            node,
            SymbolKind.METHOD,
            ".cctor" if static else ".ctor",
            parameters=self._parameters(node.child_by_field_name("parameters"), self.resolver),
            return_type=_VOID,
        )
        if static:
            member.accessibility = Accessibility.PRIVATE
        self._add(member)

    def _add_destructor(self, node) -> None:
        member = self._member(node, SymbolKind.METHOD, "Finalize", return_type=_VOID)
        member.accessibility = Accessibility.PROTECTED
        member.is_virtual = True
        self._add(member)

    def _add_operator(self, node) -> None:
        operator = node.child_by_field_name("operator")
        parameters = self._parameters(node.child_by_field_name("parameters"), self.resolver)
        if operator is None:
            return
        name = OPERATOR_NAMES.get((_text(operator, self.source_bytes).strip(), len(parameters)))
        if name is None:
            logger.debug("Unknown operator %s in %s", _text(operator, self.source_bytes), self.scope.file)
            return
        self._add(self._member(
            node, SymbolKind.METHOD, name,
            parameters=parameters,
            return_type=self._return_type(node, self.resolver),
        ))

    def _add_conversion(self, node) -> None:
        explicit = any(c.type == "explicit" for c in node.children)
        self._add(self._member(
            node,
            SymbolKind.METHOD,
            "op_Explicit" if explicit else "op_Implicit",
            parameters=self._parameters(node.child_by_field_name("parameters"), self.resolver),
            return_type=self._return_type(node, self.resolver),
        ))

    def _add_fields(self, node) -> None:
        kind = SymbolKind.EVENT if node.type == "event_field_declaration" else SymbolKind.FIELD
        declaration = next((c for c in node.named_children if c.type == "variable_declaration"), None)
        if declaration is None:
            return
        member_type = self.resolver.resolve_node(declaration.child_by_field_name("type"))
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name") or next(
                (c for c in declarator.named_children if c.type == "identifier"), None
            )
            if name_node is None:
                continue
            self._add(self._member(
                node, kind, _text(name_node, self.source_bytes), return_type=member_type,
            ))

    def _add_event(self, node) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        self._add(self._member(
            node, SymbolKind.EVENT, _text(name_node, self.source_bytes),
            return_type=self.resolver.resolve_node(node.child_by_field_name("type")),
        ))

    def _add_property(self, node) -> None:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return
        self._add(self._member(
            node, SymbolKind.PROPERTY, _text(name_node, self.source_bytes),
            return_type=self.resolver.resolve_node(node.child_by_field_name("type")),
        ))

    def _add_indexer(self, node) -> None:
        parameters = node.child_by_field_name("parameters") or next(
            (c for c in node.named_children if c.type == "bracketed_parameter_list"), None
        )
        self._add(self._member(
            node, SymbolKind.PROPERTY, "Item",
            parameters=self._parameters(parameters, self.resolver),
            return_type=self.resolver.resolve_node(node.child_by_field_name("type")),
        ))

    def _collect_enum_members(self, body) -> None:
        enum_ref = self.owner.as_type_ref()
        for child in body.named_children:
            if child.type != "enum_member_declaration":
                continue
            name_node = child.child_by_field_name("name") or next(
                (c for c in child.named_children if c.type == "identifier"), None
            )
            if name_node is None:
                continue
            self._add(Symbol(
                kind=SymbolKind.FIELD,
                name=_text(name_node, self.source_bytes),
                accessibility=Accessibility.PUBLIC,
                is_static=True,
                return_type=enum_ref,
                source=_span(child, self.scope),
            ))

    def _add_delegate_invoke(self) -> None:
        node = self.node
        self._add(Symbol(
            kind=SymbolKind.METHOD,
            name="Invoke",
            accessibility=Accessibility.PUBLIC,
            is_virtual=True,
            parameters=self._parameters(node.child_by_field_name("parameters"), self.resolver),
            return_type=self._return_type(node, self.resolver),
            source=_span(node, self.scope),
        ))

    def _add_record_parameters(self) -> None:
        parameter_list = self.node.child_by_field_name("parameters") or next(
            (c for c in self.node.named_children if c.type == "parameter_list"), None
        )
        if parameter_list is None:
            return
        parameters = self._parameters(parameter_list, self.resolver)
        span = _span(self.node, self.scope)
        self._add(Symbol(
            kind=SymbolKind.METHOD,
            name=".ctor",
            accessibility=Accessibility.PUBLIC,
            parameters=parameters,
            return_type=_VOID,
            source=span,
        ))
        for param in parameters:
            if param.name:
                self._add(Symbol(
                    kind=SymbolKind.PROPERTY,
                    name=param.name,
                    accessibility=Accessibility.PUBLIC,
                    return_type=param.type,
                    source=span,
                ))


# Discovery

def should_skip_file(path: str) -> bool:
    normalized = path.replace("\\", "/")
    return any(pattern in normalized for pattern in SKIP_PATTERNS)


def discover_source_files(
    folder_path: Path,
    max_files: int = 2000,
    max_size: int = 1024 * 1024,
) -> list[Path]:
    """Find C# files under a folder, skipping build output and generated code."""
    files = []
    for file_path in sorted(folder_path.rglob("*")):
        if not file_path.is_file() or file_path.suffix not in CSHARP_EXTENSIONS:
            continue
        rel_path = file_path.relative_to(folder_path).as_posix()
        if should_skip_file(rel_path):
            continue
        try:
            if file_path.stat().st_size > max_size:
                logger.info("Skipping %s: larger than %d bytes", rel_path, max_size)
                continue
        except OSError:
            continue
        files.append(file_path)

    if len(files) > max_files:
        logger.warning("Found %d C# files, keeping the first %d", len(files), max_files)
        # Shallow files first; deeply nested ones are more often tooling
        files.sort(key=lambda p: (p.relative_to(folder_path).as_posix().count("/"), p.as_posix()))
        files = files[:max_files]
    return files


def _assembly_name(folder_path: Path) -> str:
    projects = sorted(folder_path.glob("*.csproj"))
    if len(projects) == 1:
        return projects[0].stem
    return folder_path.resolve().name or "assembly"


def parse_sources(sources: dict[str, str], name: str = "assembly") -> SourceTree:
    """Build a symbol graph from in-memory C# sources (path -> content)."""
    loader = CSharpLoader(name)
    for path in sorted(sources):
        loader.add_file(path, sources[path])
    return loader.build()


def load_source_tree(
    path: str,
    max_files: int = 2000,
    max_size: int = 1024 * 1024,
) -> SourceTree:
    """Load a .cs file or a folder of .cs files.

    Raises:
        AssemblyLoadError: if the path is missing or holds no C# sources
    """
    root = Path(path).expanduser()
    if not root.exists():
        raise AssemblyLoadError(f"Path not found: {path}")

    if root.is_file():
        if root.stat().st_size > max_size:
            raise AssemblyLoadError(f"{path} is larger than {max_size} bytes")
        files = [root]
        name = root.stem
        base = root.parent
    else:
        files = discover_source_files(root, max_files, max_size)
        name = _assembly_name(root)
        base = root
    if not files:
        raise AssemblyLoadError(f"No C# source files found in {path}")

    sources = {}
    for file_path in files:
        rel_path = file_path.relative_to(base).as_posix()
        try:
            sources[rel_path] = file_path.read_text(encoding="utf-8-sig", errors="replace")
        except OSError as e:
            logger.warning("Cannot read %s: %s", rel_path, e)

    return parse_sources(sources, name)
