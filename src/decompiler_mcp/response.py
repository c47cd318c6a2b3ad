"""Uniform response envelope for tool results."""

import logging
from typing import Any, Callable

from .errors import DecompilerMcpError

logger = logging.getLogger(__name__)


def ok(data: Any = None) -> dict:
    return {"status": "ok", "data": data}


def error(message: str, error_type: str = "Error") -> dict:
    return {"status": "error", "message": message, "error_type": error_type}


def try_execute(operation: Callable[[], Any]) -> dict:
    """Run an operation and wrap its result or failure in an envelope.

    Known conditions keep their error_type; bad arguments report
    "InvalidArgument"; anything else is logged and reported as an internal
    error.
    """
    try:
        return ok(operation())
    except DecompilerMcpError as e:
        logger.debug("%s: %s", e.error_type, e)
        return error(str(e), e.error_type)
    except (ValueError, KeyError) as e:
        return error(f"Invalid argument: {e}", "InvalidArgument")
    except Exception as e:
        logger.exception("Unexpected error")
        return error(f"Internal error: {e}", "InternalError")
