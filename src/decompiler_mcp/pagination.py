"""Cursor pagination for list tools."""

from typing import Callable, Optional, Sequence, TypeVar

T = TypeVar("T")

MAX_LIMIT = 1000


def paginate(
    items: Sequence[T],
    limit: int = 100,
    cursor: Optional[str] = None,
    render: Callable[[T], dict] = lambda item: item,
) -> dict:
    """Return one page of items.

    The cursor is the string index of the first item of the page, as handed
    out in next_cursor.

    Raises:
        ValueError: on a non-numeric or negative cursor, or a non-positive limit
    """
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")
    limit = min(limit, MAX_LIMIT)

    start = 0
    if cursor:
        if not cursor.isdigit():
            raise ValueError(f"Invalid cursor: {cursor!r}")
        start = int(cursor)

    page = items[start:start + limit]
    has_more = start + limit < len(items)
    return {
        "items": [render(item) for item in page],
        "has_more": has_more,
        "next_cursor": str(start + limit) if has_more else None,
        "total": len(items),
    }
