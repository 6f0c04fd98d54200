"""Type definitions shared across the query session.

A response is classified exactly once, when it comes off the wire, into a
tagged QueryResult. Everything downstream dispatches on ``shape`` instead of
re-inspecting the payload.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ResponseShape(Enum):
    """Shape of an endpoint response body."""

    # JSON array whose elements are all objects
    TABULAR = "tabular"

    # Any other valid JSON (scalars, objects, arrays of scalars)
    STRUCTURED = "structured"

    # Body is not valid JSON
    TEXT = "text"

    def __str__(self) -> str:
        return self.value

    @property
    def is_json(self) -> bool:
        """Check if the body parsed as JSON."""
        return self in (ResponseShape.TABULAR, ResponseShape.STRUCTURED)


class ConnectionStatus(Enum):
    """Health of the remote endpoint as seen by the last probe."""

    UNKNOWN = "unknown"
    CONNECTED = "connected"
    SERVER_ERROR = "server_error"
    DISCONNECTED = "disconnected"

    def __str__(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def color(self) -> str:
        return _STATUS_COLORS[self]


_STATUS_LABELS = {
    ConnectionStatus.UNKNOWN: "Checking...",
    ConnectionStatus.CONNECTED: "Connected",
    ConnectionStatus.SERVER_ERROR: "Server Error",
    ConnectionStatus.DISCONNECTED: "Disconnected",
}

_STATUS_COLORS = {
    ConnectionStatus.UNKNOWN: "yellow",
    ConnectionStatus.CONNECTED: "green",
    ConnectionStatus.SERVER_ERROR: "yellow",
    ConnectionStatus.DISCONNECTED: "red",
}


@dataclass(frozen=True)
class QueryResult:
    """
    A classified endpoint response.

    Attributes:
        shape: How the body was classified
        payload: List of row dicts (TABULAR), decoded JSON (STRUCTURED)
            or the raw body (TEXT)
        raw: Response body exactly as received, kept for display
        status_code: HTTP status of the response
        elapsed: Seconds spent waiting for the response
    """

    shape: ResponseShape
    payload: Any
    raw: str
    status_code: int = 200
    elapsed: Optional[float] = None

    @property
    def rows(self) -> Optional[list]:
        """Row dicts for tabular results, None otherwise."""
        if self.shape is ResponseShape.TABULAR:
            return self.payload
        return None
