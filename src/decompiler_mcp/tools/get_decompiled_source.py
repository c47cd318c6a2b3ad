"""Decompiled source tools."""

from typing import Optional

from ..context import AssemblyContext
from ..decompiler import SourceDecompiler
from ..errors import DecompilationError
from ..response import try_execute


def get_decompiled_source(context: AssemblyContext, member_id: str) -> dict:
    """Full source document of a member or type."""
    return try_execute(lambda: SourceDecompiler(context).decompile_id(member_id).to_dict())


def get_source_slice(
    context: AssemblyContext,
    member_id: str,
    start_line: int = 1,
    end_line: Optional[int] = None,
    include_line_numbers: bool = False,
    context_lines: int = 0,
) -> dict:
    """A 1-based inclusive line range of a member's source.

    Args:
        context: Assembly context
        member_id: Member id
        start_line: First line (1-based)
        end_line: Last line, inclusive; defaults to the end of the document
        include_line_numbers: Prefix each line with its number
        context_lines: Extra lines to include on both sides of the range
    """
    def run():
        start = max(1, start_line - context_lines)
        end = end_line + context_lines if end_line is not None else None
        source_slice = SourceDecompiler(context).get_source_slice(member_id, start, end)

        result = source_slice.to_dict()
        if include_line_numbers:
            lines = source_slice.code.split("\n")
            result["code"] = "\n".join(
                f"{source_slice.start_line + i:>4}: {line}" for i, line in enumerate(lines)
            )
        return result

    return try_execute(run)


BATCH_SLICE_LINES = 50


def batch_get_decompiled_source(
    context: AssemblyContext,
    member_ids: list[str],
    max_total_chars: int = 200_000,
) -> dict:
    """The first lines of several members' source, under a total size cap.

    Every id is resolved before any source is read, so one bad id fails the
    whole batch. Members without source get an entry with an error message.

    Args:
        context: Assembly context
        member_ids: Member ids to fetch, in order
        max_total_chars: Stop once the combined code would exceed this
    """
    def run():
        if not member_ids:
            raise ValueError("member_ids must not be empty")
        if max_total_chars <= 0:
            raise ValueError(f"max_total_chars must be positive, got {max_total_chars}")

        decompiler = SourceDecompiler(context)
        symbols = [decompiler.resolver.require(member_id) for member_id in member_ids]

        items = []
        total = 0
        truncated = False
        for symbol in symbols:
            try:
                document = decompiler.decompile(symbol)
            except DecompilationError as e:
                items.append({"member_id": decompiler.resolver.generate_id(symbol), "error": str(e)})
                continue

            end_line = min(document.total_lines, BATCH_SLICE_LINES)
            code = "\n".join(document.lines[:end_line])
            if total + len(code) > max_total_chars:
                truncated = True
                break
            total += len(code)
            items.append({
                "member_id": document.member_id,
                "language": document.language,
                "start_line": 1,
                "end_line": end_line,
                "total_lines": document.total_lines,
                "hash": document.hash,
                "code": code,
            })

        return {
            "items": items,
            "total_characters": total,
            "truncated": truncated,
            "processed": len(items),
            "requested": len(member_ids),
        }

    return try_execute(run)
