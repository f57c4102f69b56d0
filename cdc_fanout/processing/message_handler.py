from typing import Any, Dict, List, Optional, Sequence, Tuple

from cdc_fanout.models.change import Action, Change
from cdc_fanout.models.consumer import Consumer, MessageKind
from cdc_fanout.models.delivery import (
    ConsumerEvent,
    ConsumerEventData,
    ConsumerEventMetadata,
    ConsumerRecord,
    ConsumerRecordState,
)
from cdc_fanout.processing.matcher import ConsumerMatcher
from cdc_fanout.stores.base import DeliveryStore
from cdc_fanout.utils.exceptions import PersistenceError
from cdc_fanout.utils.logger import logger


class MessageHandler:
    """
    Fans a batch of changes out to the consumers subscribed to them.

    Every (consumer, change) pair is matched; each match becomes one delivery
    record whose shape follows the consumer's message kind. Records are then
    written with at most one bulk insert per shape, inside a single store
    transaction, so a batch is either fully written or not written at all.
    """

    def __init__(
        self, store: DeliveryStore, matcher: Optional[ConsumerMatcher] = None
    ) -> None:
        """
        Initialize the MessageHandler.

        Args:
            store: The store delivery records are written to
            matcher: The consumer matcher; defaults to one failing filters on
                missing columns
        """
        self.store = store
        self.matcher = matcher or ConsumerMatcher()

    def handle_messages(
        self, consumers: Sequence[Consumer], changes: Sequence[Change]
    ) -> int:
        """
        Match, build and persist delivery records for a batch.

        Args:
            consumers: The active consumers.
            changes: The batch of changes, in commit order.

        Returns:
            int: The number of delivery records written.

        Raises:
            PersistenceError: If either bulk insert fails. Nothing from the
                batch is left committed.
        """
        events, records = build_delivery_records(consumers, changes, self.matcher)

        if not events and not records:
            logger.debug(
                f"No matches for {len(changes)} changes across "
                f"{len(consumers)} consumers"
            )
            return 0

        try:
            with self.store.transaction():
                written = 0
                if events:
                    written += self.store.insert_consumer_events(events)
                if records:
                    written += self.store.insert_consumer_records(records)
        except PersistenceError:
            raise
        except Exception as e:
            error_msg = f"Failed to persist delivery records: {str(e)}"
            logger.error(error_msg)
            raise PersistenceError(error_msg)

        logger.debug(
            f"Wrote {len(events)} consumer events and {len(records)} consumer "
            f"records for {len(changes)} changes"
        )
        return written


def build_delivery_records(
    consumers: Sequence[Consumer],
    changes: Sequence[Change],
    matcher: Optional[ConsumerMatcher] = None,
) -> Tuple[List[ConsumerEvent], List[ConsumerRecord]]:
    """Build the delivery records for every matching (consumer, change) pair.

    Records are ordered by change, then by consumer, so a consumer's records
    keep the commit order of the batch.
    """
    matcher = matcher or ConsumerMatcher()
    events: List[ConsumerEvent] = []
    records: List[ConsumerRecord] = []

    for change in changes:
        for consumer in consumers:
            if not matcher.matches(consumer, change):
                continue

            if consumer.message_kind is MessageKind.EVENT:
                events.append(consumer_event(consumer, change))
            else:
                records.append(consumer_record(consumer, change))

    return events, records


def consumer_event(consumer: Consumer, change: Change) -> ConsumerEvent:
    return ConsumerEvent(
        consumer_id=consumer.id,
        table_oid=change.table_oid,
        commit_lsn=change.commit_lsn,
        record_pks=change.record_pks,
        data=ConsumerEventData(
            action=change.action,
            record=dict(change.image),
            changes=_changes(change),
            metadata=ConsumerEventMetadata(
                table_name=change.table,
                table_schema=change.schema,
                commit_timestamp=change.commit_timestamp,
            ),
        ),
    )


def consumer_record(consumer: Consumer, change: Change) -> ConsumerRecord:
    return ConsumerRecord(
        consumer_id=consumer.id,
        table_oid=change.table_oid,
        commit_lsn=change.commit_lsn,
        record_pks=change.record_pks,
        state=ConsumerRecordState.AVAILABLE,
    )


def _changes(change: Change) -> Optional[Dict[str, Any]]:
    # Only updates with a decoder-supplied pre-image have a diff
    if change.action is not Action.UPDATE or change.old_record is None:
        return None

    return {
        column: old_value
        for column, old_value in change.old_record.items()
        if change.record.get(column) != old_value
    }
