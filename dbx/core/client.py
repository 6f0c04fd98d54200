"""
Query Client - Send queries to the remote endpoint

Queries are opaque strings: they are percent-encoded into a single ``q``
parameter and sent with GET. The body that comes back is classified once,
here, into one of three shapes:

- TABULAR: a JSON array of objects (one row per object)
- STRUCTURED: any other valid JSON
- TEXT: anything that is not JSON
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional, Tuple

import httpx

from dbx.core.config import DEFAULT_ENDPOINT
from dbx.core.errors import TransportError
from dbx.core.types import QueryResult, ResponseShape

logger = logging.getLogger(__name__)


def classify(body: str) -> Tuple[ResponseShape, Any]:
    """
    Classify a response body.

    The order matters: an array of scalars is valid JSON but cannot populate
    rows, so it falls through to STRUCTURED.

    Args:
        body: Response body as text

    Returns:
        Tuple of (shape, payload)
    """
    try:
        data = json.loads(body)
    except (ValueError, RecursionError):
        # Bodies nested too deeply to decode are shown as text
        return ResponseShape.TEXT, body

    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        return ResponseShape.TABULAR, data

    return ResponseShape.STRUCTURED, data


class QueryClient:
    """
    HTTP client for a single query endpoint

    Example:
        client = QueryClient("http://localhost:8000/db")
        result = client.execute("select * from users limit 5")
        print(result.shape, len(result.rows or []))
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        param: str = "q",
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client

        Args:
            endpoint: Base URL of the query endpoint (without the query parameter)
            param: Name of the URL parameter carrying the query
            timeout: Request timeout in seconds (default: wait indefinitely)
            transport: Optional httpx transport, mainly for tests
        """
        self.endpoint = endpoint
        self.param = param
        self._client = httpx.Client(timeout=timeout, transport=transport, follow_redirects=True)

    def execute(self, query: str) -> QueryResult:
        """
        Send a query and classify the response

        Args:
            query: Query text, sent verbatim

        Returns:
            Classified QueryResult (any HTTP status is accepted)

        Raises:
            TransportError: If the endpoint could not be reached
        """
        start_time = time.monotonic()
        response = self._get(params={self.param: query})
        elapsed = time.monotonic() - start_time

        raw = response.text
        shape, payload = classify(raw)
        logger.debug(
            "Query returned HTTP %s, %d bytes, classified as %s in %.3fs",
            response.status_code,
            len(raw),
            shape,
            elapsed,
        )
        return QueryResult(
            shape=shape,
            payload=payload,
            raw=raw,
            status_code=response.status_code,
            elapsed=elapsed,
        )

    def probe(self) -> int:
        """
        Issue a bare request to the endpoint (no query)

        Returns:
            HTTP status code of the response

        Raises:
            TransportError: If the endpoint could not be reached
        """
        return self._get().status_code

    def _get(self, params: Optional[dict] = None) -> httpx.Response:
        try:
            return self._client.get(self.endpoint, params=params)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.info("Request to %s failed: %s", self.endpoint, e)
            raise TransportError(f"{type(e).__name__}: {e}", cause=e) from e

    def close(self) -> None:
        """Release pooled connections"""
        self._client.close()

    def __enter__(self) -> "QueryClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
