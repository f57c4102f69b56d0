from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional
import operator as _operator

from cdc_fanout.models.change import Field, parse_timestamp
from cdc_fanout.models.consumer import ColumnFilter, FilterType, FilterValue, Operator
from cdc_fanout.utils.logger import logger


class FilterException(Exception):
    """Raised internally when a value cannot be coerced for comparison.

    It never escapes ``evaluate``: a value that cannot be compared simply
    does not match.
    """

    pass


class MissingColumnPolicy(str, Enum):
    """What a filter yields when its column is absent from the change."""

    FAIL = "fail"
    PASS = "pass"


_COMPARISONS = {
    Operator.EQ: _operator.eq,
    Operator.NE: _operator.ne,
    Operator.GT: _operator.gt,
    Operator.LT: _operator.lt,
    Operator.GTE: _operator.ge,
    Operator.LTE: _operator.le,
}

_TRUE_STRINGS = {"t", "true"}
_FALSE_STRINGS = {"f", "false"}


def evaluate(
    column_filter: ColumnFilter,
    fields: Iterable[Field],
    missing_column_policy: MissingColumnPolicy = MissingColumnPolicy.FAIL,
) -> bool:
    """
    Evaluate a column filter against the fields of a change.

    The field is found by ``column_attnum``. When it is absent the result is
    decided by ``missing_column_policy``. Otherwise the field value and the
    literal are coerced to the literal's type and compared with the filter's
    operator. Values that cannot be coerced do not match.

    Args:
        column_filter: The filter to apply.
        fields: The decoded fields of a change.
        missing_column_policy: Result to use when the column is absent.

    Returns:
        bool: True if the filter passes, False otherwise. Never raises.
    """
    field = _find_field(fields, column_filter.column_attnum)
    if field is None:
        return missing_column_policy is MissingColumnPolicy.PASS

    try:
        return _apply(column_filter.operator, field.value, column_filter.value)
    except (FilterException, TypeError, ValueError, ArithmeticError) as e:
        logger.debug(
            f"Filter on column {column_filter.column_attnum} did not match: {e}"
        )
        return False


def _find_field(fields: Iterable[Field], column_attnum: int) -> Optional[Field]:
    for field in fields:
        if field.column_attnum == column_attnum:
            return field
    return None


def _apply(op: Operator, field_value: Any, literal: FilterValue) -> bool:
    if op is Operator.IS_NULL:
        return field_value is None
    if op is Operator.NOT_NULL:
        return field_value is not None

    if literal.type is FilterType.NULL:
        if op is Operator.EQ:
            return field_value is None
        if op is Operator.NE:
            return field_value is not None
        raise FilterException(f"Operator {op.value} cannot compare against null")

    # SQL semantics: NULL compared with anything is not true
    if field_value is None:
        return False

    if op in (Operator.IN, Operator.NOT_IN):
        if literal.type is not FilterType.LIST:
            raise FilterException(f"Operator {op.value} requires a list literal")
        found = _contains(literal.value, field_value)
        return found if op is Operator.IN else not found

    if literal.type is FilterType.LIST:
        raise FilterException(f"Operator {op.value} cannot take a list literal")

    left = coerce(field_value, literal.type)
    right = coerce(literal.value, literal.type)
    return _COMPARISONS[op](left, right)


def _contains(elements: Any, field_value: Any) -> bool:
    if not isinstance(elements, (list, tuple, set, frozenset)):
        raise FilterException("List literal must be a sequence")

    for element in elements:
        element_type = infer_type(element)
        if element_type is FilterType.NULL:
            continue
        try:
            if coerce(field_value, element_type) == coerce(element, element_type):
                return True
        except (FilterException, TypeError, ValueError, ArithmeticError):
            continue
    return False


def infer_type(value: Any) -> FilterType:
    """Infer the filter type of a plain literal."""
    if value is None:
        return FilterType.NULL
    if isinstance(value, bool):
        return FilterType.BOOLEAN
    if isinstance(value, (int, float, Decimal)):
        return FilterType.NUMBER
    if isinstance(value, datetime):
        return FilterType.DATETIME
    if isinstance(value, (list, tuple)):
        return FilterType.LIST
    return FilterType.STRING


def coerce(value: Any, filter_type: FilterType) -> Any:
    """
    Coerce a value to the comparable representation for ``filter_type``.

    Raises:
        FilterException: If the value has no representation in that type.
    """
    if filter_type is FilterType.STRING:
        if isinstance(value, str):
            return value
        raise FilterException(f"Expected a string, got {type(value).__name__}")

    if filter_type is FilterType.NUMBER:
        if isinstance(value, bool):
            raise FilterException("Booleans are not numbers")
        if isinstance(value, Decimal):
            return value
        if isinstance(value, int):
            return Decimal(value)
        if isinstance(value, (float, str)):
            return Decimal(str(value).strip())
        raise FilterException(f"Expected a number, got {type(value).__name__}")

    if filter_type is FilterType.BOOLEAN:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise FilterException(f"Expected a boolean, got {value!r}")

    if filter_type is FilterType.DATETIME:
        if isinstance(value, str):
            value = parse_timestamp(value)
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value
        raise FilterException(f"Expected a datetime, got {type(value).__name__}")

    raise FilterException(f"Cannot coerce to {filter_type.value}")
