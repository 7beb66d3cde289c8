"""
crsearch - search query composition for content repositories.

This module provides the main entry points:

- **SearchClient**: The HTTP transport to the search engine.
- **QueryBuilder**: The fluent API composing one search request.
- **RecordList / AggregationDocument**: The two result shapes of `execute()`.

Example:
    >>> from crsearch import SearchClient
    >>> with SearchClient.connect("localhost", 9200, index_name="typo3cr") as client:
    ...     pages = client.query_builder().query(site).node_type("Acme.Site:Page").limit_records(5).execute()
"""

# --- Client ---
from .comm import (
    ClientConfig as ClientConfig,
    SearchClient as SearchClient,
    SearchResponse as SearchResponse,
)

# --- Query composition ---
from .models import NodeProtocol as NodeProtocol
from .models.query import (
    AggregationDocument as AggregationDocument,
    QueryBuilder as QueryBuilder,
    QueryResult as QueryResult,
    QueryTree as QueryTree,
    RecordList as RecordList,
    SearchResponseProtocol as SearchResponseProtocol,
    SearchTransportProtocol as SearchTransportProtocol,
)

# --- Enums ---
from .enum import (
    ClauseType as ClauseType,
    ResultMode as ResultMode,
    StatAggregator as StatAggregator,
)

# --- Exceptions ---
from .exceptions import (
    InvalidPathError as InvalidPathError,
    MalformedResponseError as MalformedResponseError,
    QueryBuildingError as QueryBuildingError,
    UnsupportedClauseError as UnsupportedClauseError,
    UnsupportedStatError as UnsupportedStatError,
)

from .logging_config import (
    get_logger as get_logger,
    setup_sdk_logging as setup_sdk_logging,
)

__all__ = [
    # Client
    "ClientConfig",
    "SearchClient",
    "SearchResponse",
    # Logging
    "get_logger",
    "setup_sdk_logging",
    # Query
    "NodeProtocol",
    "QueryBuilder",
    "QueryTree",
    "QueryResult",
    "RecordList",
    "AggregationDocument",
    "SearchResponseProtocol",
    "SearchTransportProtocol",
    # Enums
    "ClauseType",
    "ResultMode",
    "StatAggregator",
    # Exceptions
    "QueryBuildingError",
    "InvalidPathError",
    "UnsupportedClauseError",
    "UnsupportedStatError",
    "MalformedResponseError",
]


# --- Set up the top-level logger for the package ---

from logging import NullHandler

logging_config = get_logger()
logging_config.addHandler(NullHandler())
