import pytest

from crsearch import (
    ClauseType,
    InvalidPathError,
    QueryBuilder,
    QueryBuildingError,
    ResultMode,
    StatAggregator,
    UnsupportedClauseError,
    UnsupportedStatError,
)

VISIBILITY_EXCLUSIONS = [
    {"term": {"_hidden": True}},
    {"range": {"_hiddenBeforeDateTime": {"gt": "now"}}},
    {"range": {"_hiddenAfterDateTime": {"lt": "now"}}},
]


@pytest.fixture
def builder(make_transport) -> QueryBuilder:
    return QueryBuilder(make_transport())


def _bool_filter(builder: QueryBuilder):
    return builder.get_request()["aggs"]["filtered"]["filter"]["bool"]


def _sub_aggregations(builder: QueryBuilder):
    return builder.get_request()["aggs"]["filtered"]["aggs"]


def _top_hits(builder: QueryBuilder):
    return _sub_aggregations(builder)["top_node_hits"]["top_hits"]


def test_every_operation_returns_the_builder(builder, site_node):
    chained = (
        builder.query(site_node)
        .node_type("Acme.Site:Page")
        .exact_match("title", "Home")
        .greater_than("price", 1)
        .greater_than_or_equal("price", 2)
        .less_than("price", 3)
        .less_than_or_equal("price", 4)
        .fulltext("robots")
        .sort_asc("createdAt")
        .sort_desc("title")
        .average("price")
        .minimum("price")
        .maximum("price")
        .sum("price")
        .stats("price")
        .extended_stats("price")
        .group_by_property("state")
        .add_filter("exists", {"field": "title"}, "should")
        .add_stat("avg", "score")
        .append_at_path("aggs.filtered.filter.bool.should", {"term": {"a": 1}})
        .set_at_path("size", 0)
        .log("chain")
        .limit_records(3)
    )
    assert chained is builder


def test_initial_state(builder):
    assert builder.result_mode is ResultMode.Aggregate
    assert builder.context_node is None
    assert _bool_filter(builder)["must_not"] == VISIBILITY_EXCLUSIONS


def test_add_filter_appends_in_call_order(builder):
    for i in range(3):
        builder.add_filter("term", {"n": i}, "must")
    assert _bool_filter(builder)["must"] == [{"term": {"n": i}} for i in range(3)]


@pytest.mark.parametrize("clause", ["must", "should", "must_not", ClauseType.SHOULD])
def test_add_filter_targets_clause(builder, clause):
    builder.add_filter("term", {"color": "red"}, clause)
    assert _bool_filter(builder)[str(clause)][-1] == {"term": {"color": "red"}}


def test_add_filter_defaults_to_must(builder):
    builder.add_filter("term", {"color": "red"})
    assert _bool_filter(builder)["must"] == [{"term": {"color": "red"}}]


def test_unsupported_clause_raises_without_mutation(builder):
    snapshot = builder._tree.to_dict()
    with pytest.raises(UnsupportedClauseError, match="'maybe' is not supported") as excinfo:
        builder.add_filter("term", {"color": "red"}, "maybe")
    assert excinfo.value.supported == ("must", "should", "must_not")
    assert isinstance(excinfo.value, QueryBuildingError)
    assert builder.get_request() == snapshot


def test_visibility_exclusions_survive_other_filters(builder):
    for i in range(5):
        builder.add_filter("term", {"n": i}, "must_not")
    must_not = _bool_filter(builder)["must_not"]
    assert must_not[:3] == VISIBILITY_EXCLUSIONS
    assert len(must_not) == 8


def test_exact_match_reduces_node_to_identifier(builder, make_node):
    author = make_node("author-42", "/sites/acme/authors/jane")
    builder.exact_match("author", author).exact_match("title", "Home")
    assert _bool_filter(builder)["must"] == [
        {"term": {"author": "author-42"}},
        {"term": {"title": "Home"}},
    ]


@pytest.mark.parametrize(
    "method, operator",
    [
        ("greater_than", "gt"),
        ("greater_than_or_equal", "gte"),
        ("less_than", "lt"),
        ("less_than_or_equal", "lte"),
    ],
)
def test_range_filters(builder, method, operator):
    getattr(builder, method)("price", 10)
    assert _bool_filter(builder)["must"] == [{"range": {"price": {operator: 10}}}]


def test_node_type_filters_on_type_and_supertypes(builder):
    builder.node_type("Acme.Site:Document")
    assert _bool_filter(builder)["must"] == [
        {"term": {"__typeAndSupertypes": "Acme.Site:Document"}}
    ]


def test_query_scopes_to_subtree_and_workspaces(builder, site_node):
    builder.query(site_node)
    assert _bool_filter(builder)["must"] == [
        {"term": {"__parentPath": "/sites/acme"}},
        {"terms": {"__workspace": ["live", "user-admin"]}},
    ]
    assert builder.context_node is site_node


def test_fulltext_appends_query_string_to_must(builder):
    builder.node_type("Acme.Site:Page").fulltext("neos AND flow")
    assert _bool_filter(builder)["must"][-1] == {"query_string": {"query": "neos AND flow"}}


def test_sort_keys_compose_in_call_order(builder):
    builder.sort_asc("createdAt").sort_desc("title")
    assert _top_hits(builder)["sort"] == [
        {"createdAt": {"order": "asc"}},
        {"title": {"order": "desc"}},
    ]


def test_add_stat_overwrites_same_kind(builder):
    builder.add_stat("avg", "price").add_stat("avg", "price")
    aggs = _sub_aggregations(builder)
    assert [k for k in aggs if k.startswith("avg")] == ["avg_property"]
    assert aggs["avg_property"] == {"avg": {"field": "price"}}

    builder.average("weight")
    assert aggs["avg_property"] == {"avg": {"field": "weight"}}


@pytest.mark.parametrize(
    "method, kind",
    [
        ("average", "avg"),
        ("minimum", "min"),
        ("maximum", "max"),
        ("sum", "sum"),
        ("stats", "stats"),
        ("extended_stats", "extended_stats"),
    ],
)
def test_named_stats(builder, method, kind):
    getattr(builder, method)("score")
    assert _sub_aggregations(builder)[f"{kind}_property"] == {kind: {"field": "score"}}


def test_distinct_stats_coexist(builder):
    builder.add_stat(StatAggregator.MIN, "price").add_stat("max", "price")
    aggs = _sub_aggregations(builder)
    assert aggs["min_property"] == {"min": {"field": "price"}}
    assert aggs["max_property"] == {"max": {"field": "price"}}


def test_unsupported_stat_raises_without_mutation(builder):
    snapshot = builder._tree.to_dict()
    with pytest.raises(UnsupportedStatError, match="'median' is not supported"):
        builder.add_stat("median", "price")
    assert builder.get_request() == snapshot


def test_group_by_property_overwrites(builder):
    builder.group_by_property("state").group_by_property("country")
    assert _sub_aggregations(builder)["group_by_state"] == {"terms": {"field": "country"}}


def test_limit_records_sets_size_and_mode(builder):
    builder.limit_records(5)
    assert _top_hits(builder)["size"] == 5
    assert builder.result_mode is ResultMode.RecordFetch


def test_limit_records_defaults_to_one(builder):
    builder.limit_records()
    assert _top_hits(builder)["size"] == 1
    assert builder.result_mode is ResultMode.RecordFetch


@pytest.mark.parametrize("limit", [0, -3, 2.5, True, "10"])
def test_limit_records_rejects_non_positive_integers(builder, limit):
    with pytest.raises(QueryBuildingError, match="positive integer"):
        builder.limit_records(limit)
    assert builder.result_mode is ResultMode.Aggregate


@pytest.mark.parametrize(
    "operation",
    [
        lambda b: b.sort_asc("title"),
        lambda b: b.add_stat("sum", "price"),
        lambda b: b.group_by_property("state"),
        lambda b: b.add_filter("term", {"a": 1}),
        lambda b: b.log("debug"),
    ],
)
def test_only_limit_records_changes_result_mode(builder, operation):
    operation(builder)
    assert builder.result_mode is ResultMode.Aggregate


def test_low_level_append_rejects_unknown_path(builder):
    snapshot = builder._tree.to_dict()
    with pytest.raises(InvalidPathError, match="failed at 'sorting'"):
        builder.append_at_path("aggs.filtered.aggs.top_node_hits.top_hits.sorting", {"x": 1})
    assert builder.get_request() == snapshot


@pytest.mark.parametrize(
    "path, value",
    [
        ("aggs.filtered.filter.bool.must_not", []),
        ("aggs.filtered.filter.bool.must_not.0", {"match_all": {}}),
        ("aggs.filtered.filter", {"match_all": {}}),
        ("brand_new_root_key", {"match_all": {}}),
    ],
)
def test_low_level_set_keeps_visibility_exclusions(builder, path, value):
    snapshot = builder._tree.to_dict()
    with pytest.raises(InvalidPathError):
        builder.set_at_path(path, value)
    assert builder.get_request() == snapshot
    assert _bool_filter(builder)["must_not"] == VISIBILITY_EXCLUSIONS


def test_low_level_set_adds_sub_aggregation(builder):
    builder.set_at_path("aggs.filtered.aggs.distinct_authors", {"cardinality": {"field": "author"}})
    assert _sub_aggregations(builder)["distinct_authors"] == {"cardinality": {"field": "author"}}
