from typing import Any, Dict, Mapping, Optional, Protocol


class SearchResponseProtocol(Protocol):
    """A transport response whose body has already been decoded."""

    def treated_content(self) -> Dict[str, Any]:
        """Returns the parsed response body as a nested mapping."""
        ...


class SearchTransportProtocol(Protocol):
    """
    Structural protocol for the object a
    [`QueryBuilder`][crsearch.models.query.builders.QueryBuilder] submits its request to.

    [`SearchClient`][crsearch.comm.SearchClient] is the reference implementation.
    Implementations decide on timeouts and retries; errors raised here reach
    the caller of `execute()` unchanged.
    """

    def request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None,
    ) -> SearchResponseProtocol:
        """
        Sends `body` to `endpoint` and returns the response.

        Args:
            method: The HTTP method, e.g. `"GET"`.
            endpoint: The endpoint relative to the index, e.g. `"/_search"`.
            headers: Additional request headers.
            body: The serialized JSON request.
        """
        ...
