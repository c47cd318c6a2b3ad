"""Environment-driven settings and logging setup."""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional


DEFAULT_STORE = Path.home() / ".decompiler-mcp"
DEFAULT_MAX_FILES = 2000
DEFAULT_MAX_FILE_SIZE = 1024 * 1024  # 1MB

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    store_path: Path = DEFAULT_STORE            # Graph store directory
    assembly: Optional[str] = None              # Path loaded at server start
    log_level: str = "INFO"
    max_files: int = DEFAULT_MAX_FILES          # Loader file cap
    max_file_size: int = DEFAULT_MAX_FILE_SIZE  # Larger source files are skipped

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read settings from DECOMPILER_MCP_* variables.

        Raises:
            ValueError: if DECOMPILER_MCP_MAX_FILES or DECOMPILER_MCP_MAX_FILE_SIZE
                is not a positive integer
        """
        env = os.environ if environ is None else environ

        store = env.get("DECOMPILER_MCP_STORE")
        return cls(
            store_path=Path(store).expanduser() if store else DEFAULT_STORE,
            assembly=env.get("DECOMPILER_MCP_ASSEMBLY") or None,
            log_level=env.get("DECOMPILER_MCP_LOG_LEVEL", "INFO").upper(),
            max_files=_positive_int(env, "DECOMPILER_MCP_MAX_FILES", DEFAULT_MAX_FILES),
            max_file_size=_positive_int(env, "DECOMPILER_MCP_MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE),
        )


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None:
        return default
    number = int(value)
    if number <= 0:
        raise ValueError(f"{name} must be positive, got {number}")
    return number


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr; stdout carries the MCP stdio protocol."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(level=numeric, format=LOG_FORMAT, stream=sys.stderr)
