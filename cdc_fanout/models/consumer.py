from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple


class Operator(str, Enum):
    EQ = "=="
    NE = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="
    IN = "in"
    NOT_IN = "not_in"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


class FilterType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    NULL = "null"
    LIST = "list"


class MessageKind(str, Enum):
    """Shape of the delivery records a consumer receives."""

    EVENT = "event"
    RECORD = "record"


@dataclass(frozen=True)
class FilterValue:
    """A literal with an explicit type tag."""

    type: FilterType
    value: Any = None


@dataclass(frozen=True)
class ColumnFilter:
    """A predicate on one column, addressed by its attnum."""

    column_attnum: int
    operator: Operator
    value: FilterValue = FilterValue(FilterType.NULL)


@dataclass(frozen=True)
class SourceTable:
    """A consumer's subscription to one table; all filters must pass."""

    oid: int
    column_filters: Tuple[ColumnFilter, ...] = ()


@dataclass(frozen=True)
class Consumer:
    """
    A durable subscription.

    A consumer may subscribe to several tables, each with its own filters,
    but to any given table only once.
    """

    id: str
    message_kind: MessageKind
    source_tables: Tuple[SourceTable, ...] = ()
    name: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "message_kind", MessageKind(self.message_kind))
        object.__setattr__(self, "source_tables", tuple(self.source_tables))

    def source_table_for(self, table_oid: int) -> Optional[SourceTable]:
        for source_table in self.source_tables:
            if source_table.oid == table_oid:
                return source_table
        return None
