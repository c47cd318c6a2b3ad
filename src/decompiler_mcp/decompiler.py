"""Decompiler capability: member ids to source text."""

import hashlib
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from .context import AssemblyContext, LoadedAssembly
from .errors import DecompilationError
from .model import Symbol, SymbolKind
from .resolver import SymbolResolver, render_signature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecompiledSource:
    """Source document of one symbol."""
    member_id: str
    language: str
    code: str
    hash: str                   # SHA-256 of the code
    total_lines: int

    @property
    def lines(self) -> list[str]:
        return self.code.split("\n")

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "language": self.language,
            "total_lines": self.total_lines,
            "hash": self.hash,
            "code": self.code,
        }


@dataclass(frozen=True)
class SourceSlice:
    member_id: str
    language: str
    start_line: int
    end_line: int
    total_lines: int
    hash: str
    code: str

    def to_dict(self) -> dict:
        return {
            "member_id": self.member_id,
            "language": self.language,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "total_lines": self.total_lines,
            "hash": self.hash,
            "code": self.code,
        }


class Decompiler(Protocol):
    """Turns a symbol of the loaded assembly into source text."""

    def decompile(self, symbol: Symbol) -> DecompiledSource:
        ...


def _document(member_id: str, code: str) -> DecompiledSource:
    return DecompiledSource(
        member_id=member_id,
        language="C#",
        code=code,
        hash=hashlib.sha256(code.encode("utf-8")).hexdigest(),
        total_lines=len(code.split("\n")),
    )


class SourceDecompiler:
    """Serves declarations straight from the loaded C# source files.

    Each symbol's SourceSpan is a byte range into one file; reading it is a
    slice, no re-parsing.
    """

    def __init__(self, context: AssemblyContext):
        self.context = context
        self.resolver = SymbolResolver(context)

    def decompile(self, symbol: Symbol) -> DecompiledSource:
        loaded = self.context.require()
        member_id = self.resolver.generate_id(symbol)

        if symbol.kind is SymbolKind.NAMESPACE:
            return _document(member_id, self._namespace_listing(loaded, symbol))

        span = symbol.source
        if span is None:
            raise DecompilationError(f"No source available for {member_id}")
        content = loaded.sources.get(span.file)
        if content is None:
            raise DecompilationError(f"Source file not loaded: {span.file}")

        source_bytes = content.encode("utf-8")
        end = span.byte_offset + span.byte_length
        if end > len(source_bytes):
            raise DecompilationError(f"Source span of {member_id} is outside {span.file}")
        code = source_bytes[span.byte_offset:end].decode("utf-8", errors="replace")

        logger.debug("Decompiled %s from %s:%d", member_id, span.file, span.line)
        return _document(member_id, code)

    def decompile_id(self, member_id: str) -> DecompiledSource:
        return self.decompile(self.resolver.require(member_id))

    def doc_comment(self, symbol: Symbol) -> Optional[str]:
        """The /// comment block written directly above a declaration, if any."""
        span = symbol.source
        if span is None:
            return None
        content = self.context.require().sources.get(span.file)
        if content is None:
            return None

        before = content.encode("utf-8")[:span.byte_offset].decode("utf-8", errors="replace")
        lines = []
        # Last piece is the indentation of the declaration line itself
        for line in reversed(before.split("\n")[:-1]):
            stripped = line.strip()
            if not stripped.startswith("///"):
                break
            lines.append(stripped[3:].strip())
        if not lines:
            return None
        return "\n".join(reversed(lines))

    def get_source_slice(
        self,
        member_id: str,
        start_line: int = 1,
        end_line: Optional[int] = None,
    ) -> SourceSlice:
        """Return a 1-based inclusive line range of a member's source.

        The range is clamped to the document.

        Raises:
            ValueError: if start_line is past end_line after clamping
        """
        document = self.decompile_id(member_id)

        start_line = max(1, start_line)
        end_line = document.total_lines if end_line is None else min(document.total_lines, end_line)
        if start_line > end_line:
            raise ValueError("Start line cannot be greater than end line")

        code = "\n".join(document.lines[start_line - 1:end_line])
        return SourceSlice(
            member_id=document.member_id,
            language=document.language,
            start_line=start_line,
            end_line=end_line,
            total_lines=document.total_lines,
            hash=document.hash,
            code=code,
        )

    def _namespace_listing(self, loaded: LoadedAssembly, namespace: Symbol) -> str:
        lines = [f"namespace {namespace.name}", "{"]
        for type_symbol in loaded.graph.types():
            if type_symbol.namespace == namespace.name and type_symbol.declaring_type is None:
                lines.append(f"    {render_signature(type_symbol)} {{ }}")
        lines.append("}")
        return "\n".join(lines)
