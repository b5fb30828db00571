"""Custom exception hierarchy for pydiffy.

Exceptions raised by selectors and change callbacks are never wrapped in
these types; they reach the caller of :meth:`pydiffy.DiffEngine.ingest`
unchanged.
"""

from __future__ import annotations


class DiffyError(Exception):
    """Base exception for all pydiffy errors."""


class DiffyConfigError(DiffyError):
    """Invalid configuration value."""

    def __init__(self, message: str, *, field: str = "") -> None:
        self.field = field
        super().__init__(message)


class DiffyStateError(DiffyError):
    """Engine state was read before any snapshot was ingested."""


class DiffySourceError(DiffyError):
    """A push source was used incorrectly.

    Raised by :class:`pydiffy.sources.LiveState` when reading a value that
    was never set, or when posting from another thread without a bound
    event loop.
    """
