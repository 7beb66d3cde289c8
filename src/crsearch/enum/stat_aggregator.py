from enum import StrEnum


class StatAggregator(StrEnum):
    """
    Metric aggregations that can be computed over the filtered records.

    Each aggregator owns the fixed key `<value>_property` inside the primary
    aggregation bucket, so issuing the same aggregator twice replaces the first
    definition.
    """

    AVG = "avg"
    MIN = "min"
    MAX = "max"
    SUM = "sum"
    STATS = "stats"
    """avg, min, max, count and sum in one aggregation."""
    EXTENDED_STATS = "extended_stats"
    """`stats` plus sum_of_squares, variance and std_deviation."""

    @property
    def aggregation_key(self) -> str:
        return f"{self.value}_property"
