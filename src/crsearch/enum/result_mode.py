from enum import Enum


class ResultMode(Enum):
    """
    Selects how [`QueryBuilder.execute()`][crsearch.models.query.builders.QueryBuilder.execute]
    shapes the search response.
    """

    Aggregate = "aggregate"
    """Return the raw aggregation document of the primary bucket."""

    RecordFetch = "record_fetch"
    """Resolve the top hits into domain records. Set by `limit_records()`."""
