from typing import Any, Dict, List
import json

from cdc_fanout.filters.factory import FilterFactory
from cdc_fanout.models.consumer import Consumer, MessageKind, SourceTable
from cdc_fanout.utils.exceptions import ConfigurationError
from cdc_fanout.utils.logger import logger


def consumer_from_dict(definition: Dict[str, Any]) -> Consumer:
    """
    Build a consumer from its definition, for example::

        {"id": "c1", "message_kind": "event",
         "source_tables": [{"oid": 123, "column_filters": [...]}]}

    Raises:
        ConfigurationError: If the definition is invalid.
    """
    try:
        consumer_id = str(definition["id"])
        message_kind = MessageKind(definition.get("message_kind", "event"))
        source_tables = []
        for table in definition.get("source_tables", []):
            source_tables.append(
                SourceTable(
                    oid=int(table["oid"]),
                    column_filters=tuple(
                        FilterFactory.create_column_filter(f)
                        for f in table.get("column_filters", [])
                    ),
                )
            )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid consumer definition {definition}: {e}")

    oids = [t.oid for t in source_tables]
    if len(oids) != len(set(oids)):
        raise ConfigurationError(
            f"Consumer {consumer_id} subscribes to the same table more than once"
        )

    return Consumer(
        id=consumer_id,
        message_kind=message_kind,
        source_tables=tuple(source_tables),
        name=definition.get("name"),
    )


def load_consumers(path: str) -> List[Consumer]:
    """Load consumer definitions from a JSON file holding a list."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            definitions = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to read consumers from {path}: {e}")

    if not isinstance(definitions, list):
        raise ConfigurationError(f"{path} must contain a list of consumers")

    consumers = [consumer_from_dict(d) for d in definitions]
    logger.info(f"Loaded {len(consumers)} consumers from {path}")
    return consumers
