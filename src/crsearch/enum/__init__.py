from .clause_type import ClauseType as ClauseType
from .result_mode import ResultMode as ResultMode
from .stat_aggregator import StatAggregator as StatAggregator
