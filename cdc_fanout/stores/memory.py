from contextlib import contextmanager
from dataclasses import replace
from threading import RLock
from typing import Iterator, List, Sequence
import uuid

from cdc_fanout.models.delivery import ConsumerEvent, ConsumerRecord
from cdc_fanout.stores.base import DeliveryStore
from cdc_fanout.utils.logger import logger


class InMemoryDeliveryStore(DeliveryStore):
    """
    Delivery store kept in process memory.

    Inserted records receive an ``ack_id``. A transaction snapshots both
    tables and restores them if its body raises.
    """

    durable = False

    def __init__(self, **kwargs) -> None:
        self._events: List[ConsumerEvent] = []
        self._records: List[ConsumerRecord] = []
        self._lock = RLock()

    def insert_consumer_events(self, events: Sequence[ConsumerEvent]) -> int:
        with self._lock:
            self._events.extend(replace(e, ack_id=_new_ack_id()) for e in events)
        logger.debug(f"Inserted {len(events)} consumer events")
        return len(events)

    def insert_consumer_records(self, records: Sequence[ConsumerRecord]) -> int:
        with self._lock:
            self._records.extend(replace(r, ack_id=_new_ack_id()) for r in records)
        logger.debug(f"Inserted {len(records)} consumer records")
        return len(records)

    def list_consumer_events_for_consumer(
        self, consumer_id: str
    ) -> List[ConsumerEvent]:
        with self._lock:
            return [e for e in self._events if e.consumer_id == consumer_id]

    def list_consumer_records_for_consumer(
        self, consumer_id: str
    ) -> List[ConsumerRecord]:
        with self._lock:
            return [r for r in self._records if r.consumer_id == consumer_id]

    def delete_for_consumer(self, consumer_id: str) -> int:
        with self._lock:
            before = len(self._events) + len(self._records)
            self._events = [e for e in self._events if e.consumer_id != consumer_id]
            self._records = [
                r for r in self._records if r.consumer_id != consumer_id
            ]
            deleted = before - len(self._events) - len(self._records)
        logger.info(f"Deleted {deleted} delivery records for consumer {consumer_id}")
        return deleted

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            events_snapshot = list(self._events)
            records_snapshot = list(self._records)
            try:
                yield
            except Exception:
                self._events = events_snapshot
                self._records = records_snapshot
                logger.warning("Transaction rolled back")
                raise


def _new_ack_id() -> str:
    return str(uuid.uuid4())
