from cdc_fanout.streams.base import KeyedStream, StreamMessage
from cdc_fanout.streams.factory import StreamFactory
from cdc_fanout.streams.memory import InMemoryKeyedStream
from cdc_fanout.streams.dynamodb import DynamoDBKeyedStream

# Register the keyed streams with the factory
StreamFactory.register_stream("memory", InMemoryKeyedStream)
StreamFactory.register_stream("dynamodb", DynamoDBKeyedStream)

__all__ = [
    "KeyedStream",
    "StreamMessage",
    "StreamFactory",
    "InMemoryKeyedStream",
    "DynamoDBKeyedStream",
]
