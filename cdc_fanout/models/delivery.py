from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from cdc_fanout.models.change import Action


class ConsumerRecordState(str, Enum):
    AVAILABLE = "available"
    DELIVERED = "delivered"
    ACKED = "acked"


@dataclass(frozen=True)
class ConsumerEventMetadata:
    table_name: str
    table_schema: str
    commit_timestamp: datetime


@dataclass(frozen=True)
class ConsumerEventData:
    """Payload of a consumer event.

    ``record`` is the post-image, or the pre-image for deletes. ``changes``
    maps each modified column to its previous value and is only present for
    updates whose pre-image was supplied by the decoder.
    """

    action: Action
    record: Mapping[str, Any]
    metadata: ConsumerEventMetadata
    changes: Optional[Mapping[str, Any]] = None


@dataclass(frozen=True)
class ConsumerEvent:
    """Delivery record for consumers with message kind ``event``."""

    consumer_id: str
    table_oid: int
    commit_lsn: int
    record_pks: Tuple[str, ...]
    data: ConsumerEventData
    ack_id: Optional[str] = None


@dataclass(frozen=True)
class ConsumerRecord:
    """Delivery record for consumers with message kind ``record``."""

    consumer_id: str
    table_oid: int
    commit_lsn: int
    record_pks: Tuple[str, ...]
    state: ConsumerRecordState = ConsumerRecordState.AVAILABLE
    ack_id: Optional[str] = None
