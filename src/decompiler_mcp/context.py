"""Assembly context: owns which assembly is loaded and its derived index."""

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import NoAssemblyLoadedError
from .model import Symbol, SymbolGraph

logger = logging.getLogger(__name__)

SESSION_TAG_LENGTH = 8


@dataclass(frozen=True)
class LoadedAssembly:
    """Immutable snapshot of one load session."""
    graph: SymbolGraph
    path: str                                   # Where the assembly was loaded from
    mvid: str                                   # Unique per load session
    loaded_at: str                              # ISO timestamp (UTC)
    sources: Mapping[str, str] = field(default_factory=dict, repr=False)  # File path -> source text

    @property
    def name(self) -> str:
        return self.graph.name

    @property
    def session(self) -> str:
        """Short tag appended to ids issued during this load."""
        return self.mvid[:SESSION_TAG_LENGTH]

    def get(self, symbol_id: str) -> Optional[Symbol]:
        return self.graph.get(symbol_id)


class AssemblyContext:
    """The currently loaded assembly.

    Loading replaces the whole snapshot atomically; readers grab the
    snapshot once per operation and never see a half-replaced graph.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._current: Optional[LoadedAssembly] = None

    @property
    def is_loaded(self) -> bool:
        return self._current is not None

    @property
    def current(self) -> Optional[LoadedAssembly]:
        return self._current

    def require(self) -> LoadedAssembly:
        """Return the loaded snapshot.

        Raises:
            NoAssemblyLoadedError: if nothing is loaded
        """
        current = self._current
        if current is None:
            raise NoAssemblyLoadedError()
        return current

    def load(
        self,
        graph: SymbolGraph,
        path: str = "",
        sources: Optional[Mapping[str, str]] = None,
    ) -> LoadedAssembly:
        """Make a built graph the current assembly, replacing any previous one."""
        loaded = LoadedAssembly(
            graph=graph,
            path=path,
            mvid=uuid.uuid4().hex,
            loaded_at=datetime.now(timezone.utc).isoformat(),
            sources=MappingProxyType(dict(sources or {})),
        )
        with self._lock:
            previous = self._current
            self._current = loaded

        if previous is not None:
            logger.info("Replaced assembly %s (%s) with %s", previous.name, previous.mvid, graph.name)
        logger.info(
            "Loaded assembly %s from %s: %d types, %d symbols",
            graph.name, path or "<memory>", graph.type_count, len(graph.index),
        )
        return loaded

    def unload(self) -> bool:
        """Drop the current assembly. Returns False if nothing was loaded."""
        with self._lock:
            previous = self._current
            self._current = None
        if previous is None:
            return False
        logger.info("Unloaded assembly %s (%s)", previous.name, previous.mvid)
        return True
