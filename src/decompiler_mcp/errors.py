"""Error taxonomy shared by the resolver, generators and tools."""


class DecompilerMcpError(Exception):
    """Base class for every reported condition."""

    error_type = "Error"


class NoAssemblyLoadedError(DecompilerMcpError):
    """An operation needed a loaded assembly but none is loaded."""

    error_type = "NoAssemblyLoaded"

    def __init__(self, message: str = "No assembly loaded"):
        super().__init__(message)


class SymbolNotFoundError(DecompilerMcpError):
    """A symbol id is malformed or does not resolve in the loaded graph."""

    error_type = "SymbolNotFound"

    def __init__(self, symbol_id: str, message: str = ""):
        self.symbol_id = symbol_id
        super().__init__(message or f"Symbol not found: {symbol_id}")


class WrongSymbolKindError(DecompilerMcpError):
    """An operation received a symbol of the wrong kind."""

    error_type = "WrongSymbolKind"

    def __init__(self, symbol_id: str, expected: str, actual: str):
        self.symbol_id = symbol_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Member must be a {expected.lower()}: {symbol_id} is a {actual.lower()}")


class GenerationError(DecompilerMcpError):
    """Code generation hit an inconsistency, e.g. an unrecognized type shape."""

    error_type = "GenerationFailure"


class SymbolCollisionError(DecompilerMcpError):
    """Two distinct symbols of one graph produced the same id."""

    error_type = "SymbolCollision"


class AssemblyLoadError(DecompilerMcpError):
    """An assembly input could not be found, parsed or understood."""

    error_type = "AssemblyLoadFailure"


class DecompilationError(DecompilerMcpError):
    """The decompiler has no source for the requested symbol."""

    error_type = "DecompilationFailure"
