"""Backend signals raised by :class:`ConfigTable`.

A failed precondition is a distinct signal, not an I/O error: callers
translate it into a duplicate or not-found outcome.
"""

from __future__ import annotations


class TableError(Exception):
    """Base class for table-level signals."""


class ConditionalCheckFailedError(TableError):
    """A single-item write's existence precondition did not hold."""

    def __init__(self, pk: str, message: str = "") -> None:
        self.pk = pk
        super().__init__(message or f"Conditional check failed for {pk!r}")


class TransactionCanceledError(TableError):
    """A transactional write was rolled back.

    ``reasons`` has one entry per operation: ``"ConditionalCheckFailed"``
    for the operation that failed, ``"None"`` for the others.
    """

    def __init__(self, failed_index: int, reasons: list[str]) -> None:
        self.failed_index = failed_index
        self.reasons = reasons
        super().__init__(f"Transaction cancelled, reasons [{', '.join(reasons)}]")


class ThrottlingError(TableError):
    """The backend is busy; callers should back off and retry."""
