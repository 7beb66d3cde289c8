"""
This module provides the "Fluent" API for composing searches over the
content repository index.

A [`QueryBuilder`][crsearch.models.query.builders.QueryBuilder] wraps a
[`QueryTree`][crsearch.models.query.tree.QueryTree] and exposes named
operations (filters, aggregations, sorting) that each translate into exactly one
path-addressed write on the tree. Every operation returns the builder itself,
so a query reads as a single chain:

```python
from crsearch import SearchClient

with SearchClient.connect("localhost", 9200, index_name="typo3cr") as client:
    pages = (
        client.query_builder()
        .query(site_node)
        .node_type("Acme.Site:Page")
        .greater_than_or_equal("publishedAt", "2024-01-01")
        .sort_desc("publishedAt")
        .limit_records(10)
        .execute()
    )
```

**Low-level API:** [`add_filter()`][crsearch.models.query.builders.QueryBuilder.add_filter],
[`add_stat()`][crsearch.models.query.builders.QueryBuilder.add_stat],
[`append_at_path()`][crsearch.models.query.builders.QueryBuilder.append_at_path] and
[`set_at_path()`][crsearch.models.query.builders.QueryBuilder.set_at_path] give direct
access to the request document for shapes the high-level API does not cover.
"""

import time
from typing import Any, Dict, Optional, Union

from ...enum import ClauseType, ResultMode, StatAggregator
from ...exceptions import (
    QueryBuildingError,
    UnsupportedClauseError,
    UnsupportedStatError,
)
from ...logging_config import get_logger
from ..node import NodeProtocol
from .protocols import SearchTransportProtocol
from .response import (
    AggregationDocument,
    QueryResult,
    RecordList,
    _extract_hit_paths,
    _filtered_aggregation,
)
from .tree import (
    BOOL_FILTER_PATH,
    LIVE_WORKSPACE,
    PARENT_PATH_FIELD,
    SUB_AGGREGATIONS_PATH,
    TOP_HITS_PATH,
    TYPE_AND_SUPERTYPES_FIELD,
    WORKSPACE_FIELD,
    Node,
    PathLike,
    QueryTree,
)

# Set the hierarchical logger
logger = get_logger(__name__)

SEARCH_ENDPOINT = "/_search"
GROUP_BY_AGGREGATION = "group_by_state"


def _validate_clause(clause: Union[ClauseType, str]) -> ClauseType:
    try:
        return ClauseType(clause)
    except ValueError:
        raise UnsupportedClauseError(clause, [c.value for c in ClauseType]) from None


def _validate_stat(aggregator: Union[StatAggregator, str]) -> StatAggregator:
    try:
        return StatAggregator(aggregator)
    except ValueError:
        raise UnsupportedStatError(
            aggregator, [s.value for s in StatAggregator]
        ) from None


class QueryBuilder:
    """
    Stateful, single-use builder for one search request.

    Besides the request tree, the builder tracks:

    * the **result mode**: [`ResultMode.Aggregate`][crsearch.enum.ResultMode.Aggregate]
      until [`limit_records()`][crsearch.models.query.builders.QueryBuilder.limit_records]
      switches it to [`ResultMode.RecordFetch`][crsearch.enum.ResultMode.RecordFetch];
    * the **context node** set by [`query()`][crsearch.models.query.builders.QueryBuilder.query],
      used to resolve hit paths back into nodes;
    * the **logging intent** set by [`log()`][crsearch.models.query.builders.QueryBuilder.log].

    Important: Single use
        A builder is consumed by [`execute()`][crsearch.models.query.builders.QueryBuilder.execute].
        Calling `execute()` a second time raises a `RuntimeError`; create a new
        builder per query.
    """

    def __init__(self, transport: SearchTransportProtocol):
        """
        Args:
            transport: The object the serialized request is submitted to,
                usually a [`SearchClient`][crsearch.comm.SearchClient].
        """
        self._transport = transport
        self._tree = QueryTree()
        self._result_mode = ResultMode.Aggregate
        self._context_node: Optional[NodeProtocol] = None
        self._log_this_query = False
        self._log_message: Optional[str] = None
        self._executed = False

    @property
    def result_mode(self) -> ResultMode:
        return self._result_mode

    @property
    def context_node(self) -> Optional[NodeProtocol]:
        return self._context_node

    # --- High-level API ---

    def query(self, context_node: NodeProtocol) -> "QueryBuilder":
        """
        Sets the starting point of the query.

        Results are restricted to nodes that have `context_node` in their
        rootline and live either in the `live` workspace or in the workspace the
        context node was loaded from. The context node is also used to resolve
        hit paths when records are fetched.

        Args:
            context_node: The node whose subtree is searched.

        Returns:
            The `QueryBuilder` instance for method chaining.
        """
        # __parentPath is tokenized into all ancestor paths at indexing time,
        # hence a plain term filter
        self.add_filter("term", {PARENT_PATH_FIELD: context_node.path})
        self.add_filter(
            "terms", {WORKSPACE_FIELD: [LIVE_WORKSPACE, context_node.workspace_name]}
        )
        self._context_node = context_node
        return self

    def node_type(self, node_type: str) -> "QueryBuilder":
        """
        Filters by node type, taking inheritance into account.

        `__typeAndSupertypes` holds the type itself and all of its supertypes,
        so a term filter matches subtypes too.
        """
        return self.add_filter("term", {TYPE_AND_SUPERTYPES_FIELD: node_type})

    def exact_match(self, property_name: str, value: Any) -> "QueryBuilder":
        """
        Adds an exact-match filter for `property_name`.

        Args:
            property_name: The indexed property to compare.
            value: The expected value. A node is replaced by its identifier.

        Returns:
            The `QueryBuilder` instance for method chaining.
        """
        if isinstance(value, NodeProtocol):
            value = value.identifier
        return self.add_filter("term", {property_name: value})

    def greater_than(self, property_name: str, value: Any) -> "QueryBuilder":
        """Adds a range filter `property_name > value`."""
        return self.add_filter("range", {property_name: {"gt": value}})

    def greater_than_or_equal(self, property_name: str, value: Any) -> "QueryBuilder":
        """Adds a range filter `property_name >= value`."""
        return self.add_filter("range", {property_name: {"gte": value}})

    def less_than(self, property_name: str, value: Any) -> "QueryBuilder":
        """Adds a range filter `property_name < value`."""
        return self.add_filter("range", {property_name: {"lt": value}})

    def less_than_or_equal(self, property_name: str, value: Any) -> "QueryBuilder":
        """Adds a range filter `property_name <= value`."""
        return self.add_filter("range", {property_name: {"lte": value}})

    def fulltext(self, search_word: str) -> "QueryBuilder":
        """
        Matches `search_word` against the fulltext index.

        The clause is a `query_string` query, so the engine's query string
        syntax (phrases, wildcards, boolean operators) is available.
        """
        return self.append_at_path(
            BOOL_FILTER_PATH + (ClauseType.MUST.value,),
            {"query_string": {"query": search_word}},
        )

    def sort_asc(self, property_name: str) -> "QueryBuilder":
        """
        Sorts the fetched records ascending by `property_name`.

        Successive sort calls compose a multi-key sort; the first call is the
        primary key.
        """
        return self.append_at_path(
            TOP_HITS_PATH + ("sort",), {property_name: {"order": "asc"}}
        )

    def sort_desc(self, property_name: str) -> "QueryBuilder":
        """Sorts the fetched records descending by `property_name`."""
        return self.append_at_path(
            TOP_HITS_PATH + ("sort",), {property_name: {"order": "desc"}}
        )

    def limit_records(self, limit: int = 1) -> "QueryBuilder":
        """
        Fetches up to `limit` records instead of aggregation values.

        This switches the builder to
        [`ResultMode.RecordFetch`][crsearch.enum.ResultMode.RecordFetch]:
        `execute()` then returns a
        [`RecordList`][crsearch.models.query.response.RecordList].

        Raises:
            QueryBuildingError: If `limit` is not a positive integer.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise QueryBuildingError(
                f"Record limit must be a positive integer, got '{limit}'."
            )
        self.set_at_path(TOP_HITS_PATH + ("size",), limit)
        self._result_mode = ResultMode.RecordFetch
        return self

    def average(self, property_name: str) -> "QueryBuilder":
        """Computes the average of `property_name` over the filtered records."""
        return self.add_stat(StatAggregator.AVG, property_name)

    def minimum(self, property_name: str) -> "QueryBuilder":
        """Computes the minimum of `property_name` over the filtered records."""
        return self.add_stat(StatAggregator.MIN, property_name)

    def maximum(self, property_name: str) -> "QueryBuilder":
        """Computes the maximum of `property_name` over the filtered records."""
        return self.add_stat(StatAggregator.MAX, property_name)

    def sum(self, property_name: str) -> "QueryBuilder":
        """Computes the sum of `property_name` over the filtered records."""
        return self.add_stat(StatAggregator.SUM, property_name)

    def stats(self, property_name: str) -> "QueryBuilder":
        """Computes avg, min, max, count and sum of `property_name`."""
        return self.add_stat(StatAggregator.STATS, property_name)

    def extended_stats(self, property_name: str) -> "QueryBuilder":
        """Computes `stats` plus sum of squares, variance and standard deviation."""
        return self.add_stat(StatAggregator.EXTENDED_STATS, property_name)

    def group_by_property(self, property_name: str) -> "QueryBuilder":
        """
        Buckets the filtered records by the values of `property_name`.

        The buckets are returned under `group_by_state`. Only one grouping
        exists per query; a second call replaces the first.
        """
        return self.set_at_path(
            SUB_AGGREGATIONS_PATH + (GROUP_BY_AGGREGATION,),
            {"terms": {"field": property_name}},
        )

    def log(self, message: Optional[str] = None) -> "QueryBuilder":
        """
        Logs the request at DEBUG level once it has been executed.

        Args:
            message: An optional label identifying the log entry.
        """
        self._log_this_query = True
        self._log_message = message
        return self

    # --- Low-level API ---

    def add_filter(
        self,
        filter_type: str,
        filter_options: Node,
        clause: Union[ClauseType, str] = ClauseType.MUST,
    ) -> "QueryBuilder":
        """
        Appends `{filter_type: filter_options}` to a clause of the boolean filter.

        Args:
            filter_type: The filter kind, e.g. `"term"`, `"terms"`, `"range"`.
            filter_options: The body of the filter.
            clause: One of `must`, `should`, `must_not`. Defaults to `must`.

        Returns:
            The `QueryBuilder` instance for method chaining.

        Raises:
            UnsupportedClauseError: If `clause` is not a recognized clause.
        """
        clause_type = _validate_clause(clause)
        return self.append_at_path(
            BOOL_FILTER_PATH + (clause_type.value,), {filter_type: filter_options}
        )

    def add_stat(
        self, aggregator: Union[StatAggregator, str], property_name: str
    ) -> "QueryBuilder":
        """
        Adds a metric aggregation over `property_name`.

        The aggregation is stored under `<aggregator>_property`; adding the same
        aggregator again replaces the earlier definition.

        Raises:
            UnsupportedStatError: If `aggregator` is not one of avg, min, max,
                sum, stats, extended_stats.
        """
        stat = _validate_stat(aggregator)
        return self.set_at_path(
            SUB_AGGREGATIONS_PATH + (stat.aggregation_key,),
            {stat.value: {"field": property_name}},
        )

    def append_at_path(self, path: PathLike, value: Node) -> "QueryBuilder":
        """
        Appends `value` to the list at `path` inside the request.

        Raises:
            InvalidPathError: If a segment is missing, or the path does not end at a list.
        """
        self._tree.append_at_path(path, value)
        return self

    def set_at_path(self, path: PathLike, value: Node) -> "QueryBuilder":
        """
        Sets the value at `path` inside the request; the parent must exist.

        Lists (including the visibility exclusions in `must_not`) cannot be
        set, skeleton containers cannot be replaced, and new keys are only
        accepted under `aggs.filtered.aggs` and the `top_hits` options.

        Raises:
            InvalidPathError: If the parent of the terminal segment cannot be
                resolved, or the write would change the fixed skeleton.
        """
        self._tree.set_at_path(path, value)
        return self

    def get_request(self) -> Dict[str, Any]:
        """Returns the request document as it has been built so far."""
        return self._tree.document

    # --- Execution ---

    def execute(self) -> QueryResult:
        """
        Submits the request and shapes the response.

        Returns:
            A [`RecordList`][crsearch.models.query.response.RecordList] if
            `limit_records()` was called, otherwise an
            [`AggregationDocument`][crsearch.models.query.response.AggregationDocument]
            holding the `filtered` aggregation section unchanged.

        Raises:
            RuntimeError: If the builder has already been executed.
            QueryBuildingError: If records are requested but no context node
                was set through `query()`.
            MalformedResponseError: If the response lacks the aggregation section.
        """
        if self._executed:
            raise RuntimeError(
                "QueryBuilder.execute() can only be called once. Create a new builder per query."
            )
        context_node = self._context_node
        if self._result_mode is ResultMode.RecordFetch and context_node is None:
            raise QueryBuildingError(
                "Fetching records requires a context node: call 'query()' before 'execute()'."
            )
        self._executed = True

        body = self._tree.to_json()
        time_before = time.perf_counter()
        response = self._transport.request("GET", SEARCH_ENDPOINT, {}, body)
        time_afterwards = time.perf_counter()

        if self._log_this_query:
            self._log_execution(body, (time_afterwards - time_before) * 1000)

        content = response.treated_content()

        if context_node is not None and self._result_mode is ResultMode.RecordFetch:
            return RecordList(list(_build_nodes_by_hits(context_node, content).values()))
        return AggregationDocument(_filtered_aggregation(content))

    def _log_execution(self, body: str, elapsed_ms: float):
        try:
            logger.debug(
                f"Query Log ({self._log_message}): {body} -- execution time: {elapsed_ms:.3f} ms"
            )
        except Exception:
            # A failed log record never fails the query
            pass


def _build_nodes_by_hits(
    context_node: NodeProtocol, content: Dict[str, Any]
) -> Dict[str, NodeProtocol]:
    """Resolves the top hits against `context_node`, keyed by node identifier."""
    nodes: Dict[str, NodeProtocol] = {}
    for node_path in _extract_hit_paths(content):
        if node_path is None:
            continue
        node = context_node.get_node(node_path)
        if node is not None:
            nodes[node.identifier] = node
    return nodes
