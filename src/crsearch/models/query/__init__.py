from .builders import QueryBuilder as QueryBuilder
from .protocols import (
    SearchResponseProtocol as SearchResponseProtocol,
    SearchTransportProtocol as SearchTransportProtocol,
)
from .response import (
    AggregationDocument as AggregationDocument,
    QueryResult as QueryResult,
    RecordList as RecordList,
)
from .tree import QueryTree as QueryTree
