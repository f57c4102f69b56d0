from typing import Protocol, Sequence

from cdc_fanout.models.change import Change
from cdc_fanout.models.consumer import Consumer
from cdc_fanout.processing.keyed_handler import KeyedDeliveryContext, KeyedUpsertHandler
from cdc_fanout.processing.message_handler import MessageHandler
from cdc_fanout.utils.logger import logger


class BatchProcessor(Protocol):
    """Protocol defining a component that delivers a batch of changes."""

    def process(self, changes: Sequence[Change]) -> int:
        """Deliver the batch and return the number of deliveries written."""
        ...


class FanoutProcessor:
    """Delivers batches through the message handler to a set of consumers."""

    def __init__(self, handler: MessageHandler, consumers: Sequence[Consumer]):
        self.handler = handler
        self.consumers = list(consumers)

    def process(self, changes: Sequence[Change]) -> int:
        logger.debug(
            f"Fanning out {len(changes)} changes to {len(self.consumers)} consumers"
        )
        return self.handler.handle_messages(self.consumers, changes)


class KeyedUpsertProcessor:
    """Delivers batches through the keyed upsert handler."""

    def __init__(self, handler: KeyedUpsertHandler, context: KeyedDeliveryContext):
        self.handler = handler
        self.context = context

    def process(self, changes: Sequence[Change]) -> int:
        logger.debug(
            f"Upserting {len(changes)} changes into stream {self.context.stream_id}"
        )
        return self.handler.handle_messages(self.context, changes)
