"""Column filters gating which changes reach a consumer.

A consumer subscribes to a table and, optionally, to a set of column filters
that must all pass for a change to be delivered. Filters are immutable values
and evaluating one never raises: a column that is missing or a value that
cannot be compared simply does not match.

Key components:
- ColumnFilter: A typed predicate on a single column
- Operator: The closed set of supported comparison operators
- FilterValue: A literal with an explicit type tag
- FilterFactory: Factory building filters from configuration dicts
- evaluate: The filter evaluation function
"""

from cdc_fanout.filters.base import (
    ColumnFilter,
    FilterException,
    FilterType,
    FilterValue,
    MissingColumnPolicy,
    Operator,
    evaluate,
)
from cdc_fanout.filters.factory import FilterFactory

__all__ = [
    "ColumnFilter",
    "FilterException",
    "FilterFactory",
    "FilterType",
    "FilterValue",
    "MissingColumnPolicy",
    "Operator",
    "evaluate",
]
