from threading import Lock
from typing import Dict, List, Optional

from cdc_fanout.streams.base import KeyedStream, StreamMessage
from cdc_fanout.utils.logger import logger


class InMemoryKeyedStream(KeyedStream):
    """Keyed stream kept in process memory, mostly for tests and local runs."""

    durable = False

    def __init__(self, **kwargs) -> None:
        self._streams: Dict[str, Dict[str, str]] = {}
        self._lock = Lock()

    def upsert_messages(self, stream_id: str, messages: List[StreamMessage]) -> int:
        with self._lock:
            stream = self._streams.setdefault(stream_id, {})
            for message in messages:
                stream[message.key] = message.data
        logger.debug(f"Upserted {len(messages)} messages into {stream_id}")
        return len(messages)

    def get(self, stream_id: str, key: str) -> Optional[str]:
        with self._lock:
            return self._streams.get(stream_id, {}).get(key)

    def keys(self, stream_id: str) -> List[str]:
        with self._lock:
            return sorted(self._streams.get(stream_id, {}))

    def close(self) -> None:
        pass
