"""
Error hierarchy for the process mining core.

All errors raised by the library derive from ``ProcessMiningError`` so callers
can catch the whole family at once. The concrete kinds also derive from the
matching builtin (``ValueError`` for bad arguments, ``KeyError`` for missing
lookups) so ordinary ``except ValueError`` handling keeps working.
"""


class ProcessMiningError(Exception):
    """Base class for every error raised by process_mining."""

    kind = "error"


class InvalidInputError(ProcessMiningError, ValueError):
    """Malformed constructor arguments, unparseable data, or bad filters."""

    kind = "invalid-input"


class NotFoundError(ProcessMiningError, KeyError):
    """Lookup of an unknown identifier (process id, table, ...)."""

    kind = "not-found"

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead
        return str(self.args[0]) if self.args else ""


class PreconditionFailedError(ProcessMiningError):
    """A required model or prior result is empty or mismatched."""

    kind = "precondition-failed"


class OperationCancelledError(ProcessMiningError):
    """Raised when a cancellation token reports cancellation."""

    kind = "cancelled"
