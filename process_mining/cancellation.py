"""
Cooperative cancellation for long-running analyses.

Analyzers poll the token between traces (and between variant pairs while
clustering) and stop by raising ``OperationCancelledError``.
"""

import threading
from typing import Optional

from .errors import OperationCancelledError


class CancellationToken:
    """Thread-safe flag that a caller sets to stop an analysis."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def is_cancelled(self) -> bool:
        return self._event.is_set()


def check_cancelled(token: Optional[CancellationToken], where: str = "") -> None:
    """Raise OperationCancelledError if ``token`` has been cancelled."""
    if token is not None and token.is_cancelled():
        suffix = f" during {where}" if where else ""
        raise OperationCancelledError(f"Operation cancelled{suffix}")
