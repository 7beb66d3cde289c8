"""
Result types returned by
[`QueryBuilder.execute()`][crsearch.models.query.builders.QueryBuilder.execute].

A query either fetches records (after `limit_records()`) or computes
aggregations; the two outcomes are distinct types so callers branch on the
shape explicitly:

```python
result = builder.execute()
if isinstance(result, RecordList):
    for node in result:
        ...
else:
    print(result["avg_property"]["value"])
```
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...exceptions import MalformedResponseError
from ..node import NodeProtocol
from .tree import FILTERED_AGGREGATION, PATH_FIELD, TOP_HITS_AGGREGATION


@dataclass
class RecordList:
    """
    The records matched by a record-fetch query, in hit order.

    Hits resolving to the same node identifier appear once; hits that could not
    be resolved to a live node are not included.

    Attributes:
        records (List[NodeProtocol]): The resolved nodes.
    """

    records: List[NodeProtocol] = field(default_factory=list)

    def __iter__(self) -> Iterator[NodeProtocol]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> NodeProtocol:
        return self.records[index]


@dataclass
class AggregationDocument:
    """
    The `filtered` aggregation section of the search response, as returned by
    the engine.

    Its keys follow the aggregations requested on the builder, e.g.
    `avg_property`, `stats_property`, `group_by_state`, and always `doc_count`
    and `top_node_hits`.

    Attributes:
        document (Dict[str, Any]): The raw aggregation section.
    """

    document: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.document[key]

    def __contains__(self, key: object) -> bool:
        return key in self.document

    def get(self, key: str, default: Any = None) -> Any:
        return self.document.get(key, default)


QueryResult = Union[RecordList, AggregationDocument]


# --- Response parsing ---


class _SearchHit(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Anything but a mapping carries no path, and the hit is dropped
    source: Any = Field(default=None, alias="_source")

    @property
    def node_path(self) -> Optional[str]:
        if not isinstance(self.source, dict):
            return None
        value = self.source.get(PATH_FIELD)
        # Some engine versions return projected fields as arrays
        if isinstance(value, list):
            value = value[0] if value else None
        return value if isinstance(value, str) else None


class _HitsEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    hits: List[_SearchHit] = Field(default_factory=list)


class _TopHitsAggregation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    hits: _HitsEnvelope = Field(default_factory=_HitsEnvelope)


def _filtered_aggregation(content: Dict[str, Any]) -> Dict[str, Any]:
    aggregations = content.get("aggregations")
    if not isinstance(aggregations, dict) or not isinstance(
        aggregations.get(FILTERED_AGGREGATION), dict
    ):
        raise MalformedResponseError(
            f"Search response has no 'aggregations.{FILTERED_AGGREGATION}' section."
        )
    return aggregations[FILTERED_AGGREGATION]


def _extract_hit_paths(content: Dict[str, Any]) -> List[Optional[str]]:
    """Returns the node path of every top hit, `None` where a hit carries no path."""
    filtered = _filtered_aggregation(content)
    if TOP_HITS_AGGREGATION not in filtered:
        raise MalformedResponseError(
            f"Search response has no '{TOP_HITS_AGGREGATION}' aggregation."
        )
    try:
        top_hits = _TopHitsAggregation.model_validate(filtered[TOP_HITS_AGGREGATION])
    except ValidationError as e:
        raise MalformedResponseError(
            f"Malformed '{TOP_HITS_AGGREGATION}' aggregation in search response.\nInner err: '{e}'"
        ) from e
    return [hit.node_path for hit in top_hits.hits.hits]
