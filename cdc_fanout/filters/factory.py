from typing import Any, Dict

from cdc_fanout.filters.base import (
    ColumnFilter,
    FilterType,
    FilterValue,
    Operator,
    infer_type,
)
from cdc_fanout.utils.exceptions import ConfigurationError


class FilterFactory:
    """Factory for creating column filters from configuration.

    Filter definitions arrive as plain dicts (from a consumers file or the
    persistence layer) and are turned into immutable ColumnFilter values.
    """

    @staticmethod
    def create_filter_value(raw: Any) -> FilterValue:
        """Create a typed literal.

        Args:
            raw: Either a tagged dict such as ``{"__type__": "string",
                "value": "test"}`` or a plain JSON literal, whose type is
                then inferred.

        Returns:
            The FilterValue for the literal.

        Raises:
            ConfigurationError: If the type tag is unknown.
        """
        if isinstance(raw, dict) and "__type__" in raw:
            try:
                filter_type = FilterType(raw["__type__"])
            except ValueError:
                raise ConfigurationError(
                    f"Unsupported filter value type: {raw['__type__']}"
                )
            value = raw.get("value")
            if filter_type is FilterType.LIST:
                value = tuple(value or ())
            return FilterValue(type=filter_type, value=value)

        filter_type = infer_type(raw)
        if filter_type is FilterType.LIST:
            raw = tuple(raw)
        return FilterValue(type=filter_type, value=raw)

    @classmethod
    def create_column_filter(cls, definition: Dict[str, Any]) -> ColumnFilter:
        """Create a column filter from its dict definition.

        Raises:
            ConfigurationError: If the definition is incomplete or names an
                unknown operator.
        """
        try:
            column_attnum = int(definition["column_attnum"])
            raw_operator = definition["operator"]
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid column filter {definition}: {e}")

        try:
            op = Operator(raw_operator)
        except ValueError:
            raise ConfigurationError(f"Unsupported filter operator: {raw_operator}")

        return ColumnFilter(
            column_attnum=column_attnum,
            operator=op,
            value=cls.create_filter_value(definition.get("value")),
        )
