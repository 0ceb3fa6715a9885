"""Aggregation layer -- per-asset spread rows and the filtered, ranked view over them."""

from fundingscope.aggregation.aggregator import aggregate, build_group
from fundingscope.aggregation.query import (
    annotate_liquidity,
    filter_groups,
    paginate,
    query,
    sort_groups,
)

__all__ = [
    "aggregate",
    "annotate_liquidity",
    "build_group",
    "filter_groups",
    "paginate",
    "query",
    "sort_groups",
]
