"""Symbol resolver: ids to symbols and back, signatures and summaries.

Ids come in two forms. The canonical form is the documentation-comment id
(``M:Game.Core.Widget.Compute(System.String)``), a pure function of the
symbol. Ids issued by a load session append that session's tag
(``...(System.String)@3f2a9c1b``); they stop resolving once another
assembly is loaded.
"""

import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Optional, Union

from .context import SESSION_TAG_LENGTH, AssemblyContext
from .errors import (
    DecompilerMcpError,
    NoAssemblyLoadedError,
    SymbolNotFoundError,
    WrongSymbolKindError,
)
from .model import Symbol, SymbolKind, make_symbol_id, render_type


_ARITY = re.compile(r"`\d+")
_SESSION_SUFFIX = re.compile(r"@([0-9a-f]{%d})$" % SESSION_TAG_LENGTH)


class NotFoundReason(Enum):
    NO_ASSEMBLY = "no_assembly"
    MALFORMED_ID = "malformed_id"
    UNKNOWN_ID = "unknown_id"
    STALE_ID = "stale_id"


@dataclass(frozen=True)
class NotFound:
    """Failed resolution. Falsy, so `if not result:` reads naturally."""
    symbol_id: str
    reason: NotFoundReason

    def __bool__(self) -> bool:
        return False

    @property
    def message(self) -> str:
        if self.reason is NotFoundReason.NO_ASSEMBLY:
            return "No assembly loaded"
        if self.reason is NotFoundReason.MALFORMED_ID:
            return f"Malformed member ID: {self.symbol_id!r}"
        if self.reason is NotFoundReason.STALE_ID:
            return f"Member ID '{self.symbol_id}' belongs to an earlier assembly load"
        return f"Member ID '{self.symbol_id}' could not be resolved"

    def to_error(self) -> DecompilerMcpError:
        if self.reason is NotFoundReason.NO_ASSEMBLY:
            return NoAssemblyLoadedError()
        return SymbolNotFoundError(self.symbol_id, self.message)


@dataclass(frozen=True)
class MemberSummary:
    """Presentation projection of a symbol."""
    member_id: str
    canonical_id: str
    name: str
    full_name: str
    kind: str
    declaring_type: Optional[str]
    namespace: Optional[str]
    signature: str
    accessibility: str
    is_static: bool
    is_abstract: bool
    is_virtual: bool

    def to_dict(self) -> dict:
        return asdict(self)


def parse_kind(symbol_id: str) -> Optional[SymbolKind]:
    """Kind encoded in an id's prefix, or None if the id is malformed."""
    if len(symbol_id) < 3 or symbol_id[1] != ":":
        return None
    return SymbolKind.from_prefix(symbol_id[0])


def split_session(symbol_id: str) -> tuple[str, Optional[str]]:
    """Split an id into its canonical form and session tag (None if untagged)."""
    match = _SESSION_SUFFIX.search(symbol_id)
    if match is None:
        return symbol_id, None
    return symbol_id[:match.start()], match.group(1)


def session_id(canonical: str, session: Optional[str]) -> str:
    return f"{canonical}@{session}" if session else canonical


def canonical_id(symbol_id: str) -> str:
    return split_session(symbol_id.strip())[0]


class SymbolResolver:
    """Resolves ids against whatever the context currently has loaded."""

    def __init__(self, context: AssemblyContext):
        self.context = context

    @property
    def session(self) -> Optional[str]:
        loaded = self.context.current
        return loaded.session if loaded is not None else None

    def generate_id(self, symbol: Symbol) -> str:
        """Id of a symbol, tagged with the current load session."""
        return session_id(make_symbol_id(symbol), self.session)

    def resolve(self, symbol_id: str) -> Union[Symbol, NotFound]:
        """Resolve an id to a symbol of the current graph.

        A tagged id only resolves in the session that issued it. Never
        raises; failures come back as a NotFound value.
        """
        symbol_id = (symbol_id or "").strip()
        loaded = self.context.current
        if loaded is None:
            return NotFound(symbol_id, NotFoundReason.NO_ASSEMBLY)

        canonical, session = split_session(symbol_id)
        if parse_kind(canonical) is None:
            return NotFound(symbol_id, NotFoundReason.MALFORMED_ID)
        if session is not None and session != loaded.session:
            return NotFound(symbol_id, NotFoundReason.STALE_ID)

        symbol = loaded.get(canonical)
        if symbol is None:
            return NotFound(symbol_id, NotFoundReason.UNKNOWN_ID)
        return symbol

    def require(self, symbol_id: str) -> Symbol:
        """Resolve or raise NoAssemblyLoadedError / SymbolNotFoundError."""
        result = self.resolve(symbol_id)
        if isinstance(result, NotFound):
            raise result.to_error()
        return result

    def require_kind(self, symbol_id: str, kind: SymbolKind) -> Symbol:
        symbol = self.require(symbol_id)
        if symbol.kind is not kind:
            raise WrongSymbolKindError(symbol_id, kind.label, symbol.kind_label)
        return symbol

    def require_method(self, symbol_id: str) -> Symbol:
        return self.require_kind(symbol_id, SymbolKind.METHOD)

    def require_type(self, symbol_id: str) -> Symbol:
        return self.require_kind(symbol_id, SymbolKind.TYPE)

    def render_signature(self, symbol: Symbol) -> str:
        return render_signature(symbol)

    def summarize(self, symbol: Symbol) -> MemberSummary:
        return summarize(symbol, self.session)

    def get_overloads(self, method: Symbol) -> list[Symbol]:
        """Methods of the declaring type sharing the method's name, itself included."""
        return overloads_of(method)


def overloads_of(method: Symbol) -> list[Symbol]:
    if method.declaring_type is None:
        return [method]
    return [
        m for m in method.declaring_type.members
        if m.kind is SymbolKind.METHOD and m.name == method.name
    ]


def _render_parameters(symbol: Symbol) -> str:
    parts = []
    for i, param in enumerate(symbol.parameters):
        text = render_type(param.type)
        if param.modifier:
            text = f"{param.modifier} {text}"
        parts.append(f"{text} {param.name or f'__{i}'}")
    return ", ".join(parts)


def _method_name(symbol: Symbol) -> str:
    if symbol.is_constructor and symbol.declaring_type is not None:
        name = symbol.declaring_type.display_name
    else:
        name = symbol.name
    if symbol.type_parameters:
        name += "<" + ", ".join(symbol.type_parameters) + ">"
    return name


def render_signature(symbol: Symbol) -> str:
    """Source-like signature for display; no uniqueness guarantees."""
    kind = symbol.kind
    if kind is SymbolKind.NAMESPACE:
        return f"namespace {symbol.full_name}"
    if kind is SymbolKind.TYPE:
        keyword = symbol.type_kind.value if symbol.type_kind is not None else "class"
        name = _ARITY.sub("", symbol.full_name).replace("+", ".")
        if symbol.type_parameters:
            name += "<" + ", ".join(symbol.type_parameters) + ">"
        return f"{keyword} {name}"

    member_type = render_type(symbol.return_type) if symbol.return_type is not None else "void"
    if kind is SymbolKind.METHOD:
        params = _render_parameters(symbol)
        if symbol.is_constructor:
            return f"{_method_name(symbol)}({params})"
        return f"{member_type} {_method_name(symbol)}({params})"
    if kind is SymbolKind.PROPERTY and symbol.is_indexer:
        return f"{member_type} this[{_render_parameters(symbol)}]"
    if kind is SymbolKind.EVENT:
        return f"event {member_type} {symbol.name}"
    return f"{member_type} {symbol.name}"


def summarize(symbol: Symbol, session: Optional[str] = None) -> MemberSummary:
    canonical = make_symbol_id(symbol)
    declaring = symbol.declaring_type
    return MemberSummary(
        member_id=session_id(canonical, session),
        canonical_id=canonical,
        name=symbol.display_name if symbol.kind is SymbolKind.TYPE else symbol.name,
        full_name=symbol.full_name,
        kind=symbol.kind_label,
        declaring_type=declaring.full_name if declaring is not None else None,
        namespace=symbol.namespace or None,
        signature=render_signature(symbol),
        accessibility=symbol.accessibility.value,
        is_static=symbol.is_static,
        is_abstract=symbol.is_abstract,
        is_virtual=symbol.is_virtual,
    )
