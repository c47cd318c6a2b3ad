"""Symbol dataclasses and symbol id generation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class SymbolKind(Enum):
    """Kind tag of a symbol. The value is the id prefix letter."""
    NAMESPACE = "N"
    TYPE = "T"
    METHOD = "M"
    FIELD = "F"
    PROPERTY = "P"
    EVENT = "E"

    @property
    def prefix(self) -> str:
        return f"{self.value}:"

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_prefix(cls, prefix: str) -> Optional["SymbolKind"]:
        for kind in cls:
            if kind.value == prefix:
                return kind
        return None


class TypeKind(Enum):
    CLASS = "class"
    STRUCT = "struct"
    INTERFACE = "interface"
    ENUM = "enum"
    DELEGATE = "delegate"


class Accessibility(Enum):
    PUBLIC = "Public"
    INTERNAL = "Internal"
    PROTECTED = "Protected"
    PRIVATE = "Private"
    PROTECTED_INTERNAL = "ProtectedOrInternal"
    PRIVATE_PROTECTED = "ProtectedAndInternal"


class TypeShape(Enum):
    NAMED = "named"
    ARRAY = "array"
    POINTER = "pointer"
    GENERIC_PARAMETER = "generic_parameter"


VOID = "System.Void"


@dataclass(frozen=True)
class TypeRef:
    """A reference to a type as it appears in a signature."""
    shape: TypeShape
    full_name: str = ""                              # "System.Collections.Generic.List`1", or "T" for generic parameters
    type_arguments: tuple["TypeRef", ...] = ()       # Instantiation arguments (NAMED only)
    element_type: Optional["TypeRef"] = None         # ARRAY / POINTER element
    rank: int = 1                                    # Array rank
    position: int = 0                                # Generic parameter position
    method_owned: bool = False                       # Generic parameter declared by a method

    @classmethod
    def named(cls, full_name: str, *type_arguments: "TypeRef") -> "TypeRef":
        return cls(TypeShape.NAMED, full_name=full_name, type_arguments=tuple(type_arguments))

    @classmethod
    def array(cls, element_type: "TypeRef", rank: int = 1) -> "TypeRef":
        return cls(TypeShape.ARRAY, element_type=element_type, rank=rank)

    @classmethod
    def pointer(cls, element_type: "TypeRef") -> "TypeRef":
        return cls(TypeShape.POINTER, element_type=element_type)

    @classmethod
    def generic_parameter(cls, name: str, position: int, method_owned: bool = False) -> "TypeRef":
        return cls(
            TypeShape.GENERIC_PARAMETER,
            full_name=name,
            position=position,
            method_owned=method_owned,
        )

    @property
    def name(self) -> str:
        """Simple name without namespace, declaring types or arity suffix."""
        simple = self.full_name.rsplit(".", 1)[-1].rsplit("+", 1)[-1]
        return simple.split("`", 1)[0]

    @property
    def namespace(self) -> str:
        outer = self.full_name.split("+", 1)[0]
        return outer.rsplit(".", 1)[0] if "." in outer else ""

    @property
    def is_void(self) -> bool:
        return self.shape is TypeShape.NAMED and self.full_name == VOID

    def contains_generic_parameters(self) -> bool:
        if self.shape is TypeShape.GENERIC_PARAMETER:
            return True
        if self.element_type is not None and self.element_type.contains_generic_parameters():
            return True
        return any(arg.contains_generic_parameters() for arg in self.type_arguments)

    def id_string(self) -> str:
        """Canonical form used inside symbol ids.

        Example: System.Collections.Generic.Dictionary`2{System.String,`0}[]
        """
        if self.shape is TypeShape.GENERIC_PARAMETER:
            return ("``" if self.method_owned else "`") + str(self.position)
        if self.shape is TypeShape.ARRAY:
            return self.element_type.id_string() + "[" + "," * (self.rank - 1) + "]"
        if self.shape is TypeShape.POINTER:
            return self.element_type.id_string() + "*"
        if self.type_arguments:
            args = ",".join(arg.id_string() for arg in self.type_arguments)
            return f"{self.full_name}{{{args}}}"
        return self.full_name


@dataclass(frozen=True)
class Parameter:
    name: str                       # May be empty when the name is unknown
    type: TypeRef
    modifier: str = ""              # "" | "ref" | "out" | "in" | "params" | "this"

    @property
    def is_by_ref(self) -> bool:
        return self.modifier in ("ref", "out", "in")


@dataclass(frozen=True)
class SourceSpan:
    """Where a symbol's declaration lives in the loaded source files."""
    file: str
    line: int
    end_line: int
    byte_offset: int
    byte_length: int


@dataclass(eq=False)
class Symbol:
    """A named entity of a loaded assembly's type system."""
    kind: SymbolKind
    name: str                                   # Metadata name: "Compute", ".ctor", "List`1", "System.Collections"
    namespace: str = ""                         # Namespace of the symbol or of its declaring type
    declaring_type: Optional["Symbol"] = field(default=None, repr=False)
    accessibility: Accessibility = Accessibility.PUBLIC
    is_static: bool = False
    is_abstract: bool = False
    is_virtual: bool = False
    is_override: bool = False
    parameters: tuple[Parameter, ...] = ()
    return_type: Optional[TypeRef] = None       # Return type, or the member type of fields/properties/events
    type_parameters: tuple[str, ...] = ()       # Generic parameter names declared by this type or method
    attributes: tuple[str, ...] = ()            # Attribute text as written, without brackets
    type_kind: Optional[TypeKind] = None        # TYPE only
    base_types: tuple[TypeRef, ...] = ()        # TYPE only
    members: list["Symbol"] = field(default_factory=list, repr=False)        # TYPE only
    nested_types: list["Symbol"] = field(default_factory=list, repr=False)   # TYPE only
    source: Optional[SourceSpan] = field(default=None, repr=False)

    @property
    def full_name(self) -> str:
        if self.kind is SymbolKind.NAMESPACE:
            return self.name
        if self.kind is SymbolKind.TYPE:
            if self.declaring_type is not None:
                return f"{self.declaring_type.full_name}+{self.name}"
            return f"{self.namespace}.{self.name}" if self.namespace else self.name
        owner = self.declaring_type.full_name if self.declaring_type is not None else ""
        return f"{owner}.{self.name}" if owner else self.name

    @property
    def display_name(self) -> str:
        """Name without the generic arity suffix."""
        return self.name.split("`", 1)[0]

    @property
    def is_constructor(self) -> bool:
        return self.kind is SymbolKind.METHOD and self.name in (".ctor", ".cctor")

    @property
    def is_indexer(self) -> bool:
        return self.kind is SymbolKind.PROPERTY and bool(self.parameters)

    @property
    def kind_label(self) -> str:
        if self.is_constructor:
            return "Constructor"
        return self.kind.label

    def as_type_ref(self) -> TypeRef:
        """Reference to this type, instantiated over its own generic parameters."""
        arguments = []
        owner = self
        chain = []
        while owner is not None:
            chain.insert(0, owner)
            owner = owner.declaring_type
        for outer in chain:
            for name in outer.type_parameters:
                arguments.append(TypeRef.generic_parameter(name, len(arguments)))
        return TypeRef.named(self.full_name, *arguments)


def _member_name(name: str) -> str:
    """Dots inside member names are not separators in an id."""
    return name.replace(".", "#")


def _parameter_list(parameters: tuple[Parameter, ...]) -> str:
    if not parameters:
        return ""
    parts = []
    for param in parameters:
        text = param.type.id_string()
        if param.is_by_ref:
            text += "@"
        parts.append(text)
    return "(" + ",".join(parts) + ")"


def make_symbol_id(symbol: Symbol) -> str:
    """Generate the unique, kind-prefixed id of a symbol.

    Format follows documentation comment ids:
        N:Game.Core
        T:Game.Core.Widget, T:Game.Core.Box`1, T:Game.Core.Widget+Part
        M:Game.Core.Widget.Compute(System.String)
        M:Game.Core.Widget.#ctor, M:Game.Core.Box`1.Map``1(``0,`0[])
        F:Game.Core.Widget.count
        P:Game.Core.Widget.Item(System.Int32)
        E:Game.Core.Widget.Changed
    """
    kind = symbol.kind
    if kind in (SymbolKind.NAMESPACE, SymbolKind.TYPE):
        return f"{kind.prefix}{symbol.full_name}"

    owner = symbol.declaring_type.full_name if symbol.declaring_type is not None else ""
    name = _member_name(symbol.name)
    suffix = ""
    if kind is SymbolKind.METHOD:
        if symbol.type_parameters:
            name += f"``{len(symbol.type_parameters)}"
        suffix = _parameter_list(symbol.parameters)
        if symbol.name in ("op_Implicit", "op_Explicit") and symbol.return_type is not None:
            suffix += "~" + symbol.return_type.id_string()
    elif kind is SymbolKind.PROPERTY:
        suffix = _parameter_list(symbol.parameters)

    qualified = f"{owner}.{name}" if owner else name
    return f"{kind.prefix}{qualified}{suffix}"
