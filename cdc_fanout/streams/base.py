from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, List


@dataclass(frozen=True)
class StreamMessage:
    """A keyed message: ``data`` is the encoded envelope stored under ``key``."""

    key: str
    data: str


class KeyedStream(ABC):
    """
    Base abstract class for keyed stream implementations.

    A keyed stream stores one message per key. Upserting a message whose key
    already exists replaces the stored message, so the stream always holds
    the last write for each key.
    """

    durable: ClassVar[bool] = True

    @abstractmethod
    def upsert_messages(self, stream_id: str, messages: List[StreamMessage]) -> int:
        """
        Insert or replace messages in a stream.

        Args:
            stream_id (str): The stream to write to.
            messages (List[StreamMessage]): The messages to upsert.

        Returns:
            int: The number of messages upserted.

        Raises:
            StreamError: If the upsert fails.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Close any open connections or resources.

        Raises:
            StreamError: If the close operation fails.
        """
        pass
