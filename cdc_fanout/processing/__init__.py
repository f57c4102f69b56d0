from cdc_fanout.processing.coordinator import Coordinator
from cdc_fanout.processing.keyed_handler import KeyedDeliveryContext, KeyedUpsertHandler
from cdc_fanout.processing.keys import KeyDelimiterPolicy, KeyFormat, format_key
from cdc_fanout.processing.matcher import ConsumerMatcher
from cdc_fanout.processing.message_handler import MessageHandler
from cdc_fanout.processing.processors import FanoutProcessor, KeyedUpsertProcessor
from cdc_fanout.processing.worker import Worker

__all__ = [
    "ConsumerMatcher",
    "Coordinator",
    "FanoutProcessor",
    "KeyDelimiterPolicy",
    "KeyFormat",
    "KeyedDeliveryContext",
    "KeyedUpsertHandler",
    "KeyedUpsertProcessor",
    "MessageHandler",
    "Worker",
    "format_key",
]
