from cdc_fanout.models.change import Action, Change, Field, to_unix_microseconds
from cdc_fanout.models.consumer import (
    ColumnFilter,
    Consumer,
    FilterType,
    FilterValue,
    MessageKind,
    Operator,
    SourceTable,
)
from cdc_fanout.models.delivery import (
    ConsumerEvent,
    ConsumerEventData,
    ConsumerEventMetadata,
    ConsumerRecord,
    ConsumerRecordState,
)

__all__ = [
    "Action",
    "Change",
    "Field",
    "to_unix_microseconds",
    "ColumnFilter",
    "Consumer",
    "FilterType",
    "FilterValue",
    "MessageKind",
    "Operator",
    "SourceTable",
    "ConsumerEvent",
    "ConsumerEventData",
    "ConsumerEventMetadata",
    "ConsumerRecord",
    "ConsumerRecordState",
]
