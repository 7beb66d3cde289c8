"""
Exceptions raised while composing or executing a search query.

All construction-time failures derive from
[`QueryBuildingError`][crsearch.exceptions.QueryBuildingError], itself a
`ValueError`, so callers that already guard builder chains with
`except ValueError` keep working.
"""

from typing import Iterable


class QueryBuildingError(ValueError):
    """Raised at the call site when a builder operation cannot be applied."""


class InvalidPathError(QueryBuildingError):
    """
    A path-addressed operation met a missing segment, or a segment whose node
    is not a mapping or a sequence.
    """

    def __init__(self, path: str, segment: str, reason: str):
        self.path = path
        self.segment = segment
        super().__init__(
            f"The element at path '{path}' could not be resolved (failed at '{segment}'): {reason}."
        )


class _UnsupportedValueError(QueryBuildingError):
    kind: str = "value"

    def __init__(self, value: object, supported: Iterable[str]):
        self.value = value
        self.supported = tuple(supported)
        expected = ", ".join(f"'{s}'" for s in self.supported)
        super().__init__(
            f"The given {self.kind} '{value}' is not supported. Must be one of {expected}."
        )


class UnsupportedClauseError(_UnsupportedValueError):
    """The boolean clause is not one of `must`, `should`, `must_not`."""

    kind = "clause type"


class UnsupportedStatError(_UnsupportedValueError):
    """The stat aggregator is not one of the supported metric aggregations."""

    kind = "calc aggregator"


class MalformedResponseError(ValueError):
    """The search response lacks the section required by the current result mode."""
