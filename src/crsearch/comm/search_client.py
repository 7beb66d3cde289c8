"""
Search Client Entry Point.

This module provides the `SearchClient`, the HTTP transport that
[`QueryBuilder`][crsearch.models.query.builders.QueryBuilder] instances submit
their requests through. It owns the connection settings and the underlying
`httpx.Client`, and serves as a factory for query builders.
"""

from types import TracebackType
from typing import Any, Dict, Mapping, Optional, Type

import httpx

from ..logging_config import get_logger
from ..models.query import QueryBuilder
from .config import DEFAULT_PORT, DEFAULT_SCHEME, DEFAULT_TIMEOUT, ClientConfig

# Set the hierarchical logger
logger = get_logger(__name__)


class SearchResponse:
    """
    A completed search engine response.

    Wraps the `httpx.Response` and decodes its body on demand.
    """

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def treated_content(self) -> Dict[str, Any]:
        """
        Returns the decoded JSON body. An empty body decodes to `{}`.

        Raises:
            ValueError: If the body is not a JSON object.
        """
        if not self._response.content:
            return {}
        content = self._response.json()
        if not isinstance(content, dict):
            raise ValueError(
                f"Expected a JSON object in the search response, got '{type(content).__name__}'."
            )
        return content


class SearchClient:
    """
    The gateway to the search engine.

    Tip: Context Manager Usage
        The `SearchClient` is best used as a context manager to ensure the
        underlying HTTP connections are released.

        ```python
        from crsearch import SearchClient

        with SearchClient.connect("localhost", 9200, index_name="typo3cr") as client:
            result = client.query_builder().query(site_node).average("price").execute()
            print(result["avg_property"]["value"])
        ```
    """

    # --- Private Sentinel Value ---
    # Used to ensure the constructor is only called via the `connect()` factory.
    _CONNECT_SENTINEL = object()

    def __init__(
        self,
        *,
        config: ClientConfig,
        http_client: httpx.Client,
        sentinel: object,
    ):
        """
        **Internal Constructor** (do not call this directly): use
        [`connect()`][crsearch.comm.SearchClient.connect] instead.

        Raises:
            RuntimeError: If called without the private sentinel.
        """
        if sentinel is not SearchClient._CONNECT_SENTINEL:
            raise RuntimeError(
                "SearchClient must be instantiated using the classmethod SearchClient.connect()."
            )

        self._config = config
        """The connection settings"""
        self._http_client = http_client
        """The pooled HTTP client all requests go through"""
        self._closed = False

    @classmethod
    def connect(
        cls,
        host: str,
        port: int = DEFAULT_PORT,
        index_name: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        scheme: str = DEFAULT_SCHEME,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> "SearchClient":
        """
        Creates a client for the search engine at `host:port`.

        Args:
            host (str): The engine host address (e.g., "localhost").
            port (int): The engine HTTP port. Defaults to 9200.
            index_name (Optional[str]): The index requests are scoped to.
            timeout (float): Maximum time in seconds to wait for a response.
                Defaults to 5.
            scheme (str): `http` or `https`.
            headers (Optional[Dict[str, str]]): Headers sent with every request.
            transport (Optional[httpx.BaseTransport]): A custom httpx transport,
                e.g. `httpx.MockTransport` in tests.

        Returns:
            SearchClient: A client ready to submit requests.

        Raises:
            ValueError: If the configuration is invalid.
        """
        config = ClientConfig(
            host=host,
            port=port,
            scheme=scheme,
            index_name=index_name,
            timeout=timeout,
            headers=dict(headers or {}),
        )
        logger.debug(f"Opening a client for '{config.base_url}'")
        http_client = httpx.Client(
            base_url=config.base_url,
            timeout=config.timeout,
            headers=config.headers,
            transport=transport,
        )
        return cls(
            config=config, http_client=http_client, sentinel=cls._CONNECT_SENTINEL
        )

    def __enter__(self) -> "SearchClient":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ):
        self.close()

    @property
    def config(self) -> ClientConfig:
        return self._config

    def _check_open(self):
        if self._closed:
            raise RuntimeError("SearchClient has been closed.")

    def request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None,
    ) -> SearchResponse:
        """
        Sends a request to `endpoint`, scoped to the configured index.

        Args:
            method: The HTTP method.
            endpoint: The endpoint, e.g. `"/_search"`.
            headers: Additional headers for this request only.
            body: The serialized JSON body.

        Returns:
            SearchResponse: The successful response.

        Raises:
            RuntimeError: If the client has been closed.
            httpx.HTTPStatusError: If the engine answers with an error status.
            httpx.TransportError: If the engine cannot be reached.
        """
        self._check_open()
        request_headers = dict(headers or {})
        if body is not None:
            request_headers.setdefault("Content-Type", "application/json")

        path = self._config.endpoint_path(endpoint)
        logger.debug(f"{method} '{path}'")
        response = self._http_client.request(
            method, path, headers=request_headers, content=body
        )
        response.raise_for_status()
        return SearchResponse(response)

    def query_builder(self) -> QueryBuilder:
        """
        Returns a new [`QueryBuilder`][crsearch.models.query.builders.QueryBuilder]
        submitting through this client.
        """
        self._check_open()
        return QueryBuilder(self)

    def close(self):
        """Releases the underlying HTTP connections. Calling it twice is harmless."""
        if not self._closed:
            self._http_client.close()
        self._closed = True
