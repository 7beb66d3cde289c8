"""
Configuration Module.

This module defines the connection settings used by the
[`SearchClient`][crsearch.comm.SearchClient].
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

DEFAULT_PORT = 9200
DEFAULT_TIMEOUT = 5
DEFAULT_SCHEME = "http"


@dataclass
class ClientConfig:
    """
    Connection settings for a search engine endpoint.

    Note: Internal Usage
        Instances are built by
        [`SearchClient.connect()`][crsearch.comm.SearchClient.connect]; there is
        normally no need to create one directly.
    """

    host: str
    """The search engine host."""

    port: int = DEFAULT_PORT
    """The search engine HTTP port."""

    scheme: str = DEFAULT_SCHEME
    """`http` or `https`."""

    index_name: Optional[str] = None
    """
    The index every request is scoped to. When `None`, requests target the
    cluster-level endpoint and search all indices.
    """

    timeout: float = DEFAULT_TIMEOUT
    """Maximum time in seconds to wait for a response. Enforced by the transport."""

    headers: Dict[str, str] = field(default_factory=dict)
    """Headers sent with every request (e.g. authorization)."""

    def __post_init__(self):
        if self.scheme not in ("http", "https"):
            raise ValueError(f"Unsupported scheme '{self.scheme}': expected 'http' or 'https'.")
        if self.index_name is not None and (
            not self.index_name or "/" in self.index_name
        ):
            raise ValueError(f"Invalid index name '{self.index_name}'.")

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}:{self.port}"

    def endpoint_path(self, endpoint: str) -> str:
        """Prefixes `endpoint` with the configured index, if any."""
        if not endpoint.startswith("/"):
            endpoint = f"/{endpoint}"
        if self.index_name is None:
            return endpoint
        return f"/{self.index_name}{endpoint}"
