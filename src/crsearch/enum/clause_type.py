from enum import StrEnum


class ClauseType(StrEnum):
    """
    The three buckets of the boolean filter every query is composed in.
    """

    MUST = "must"
    """All filters in this bucket have to match."""

    SHOULD = "should"
    """Filters in this bucket contribute to relevance but are optional."""

    MUST_NOT = "must_not"
    """Matching records are excluded. Pre-seeded with the visibility exclusions."""
