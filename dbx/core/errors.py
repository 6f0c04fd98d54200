"""Exception hierarchy for dbx.

Invalid JSON in a response is not an error: it degrades to a text result.
"""

from typing import Optional


class DbxError(Exception):
    """Base class for all dbx errors."""


class TransportError(DbxError):
    """The endpoint could not be reached (connection refused, DNS, timeout)."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class PersistenceError(DbxError):
    """History or config file could not be written."""


class ExportError(DbxError):
    """Result rows could not be serialized or written to disk."""
