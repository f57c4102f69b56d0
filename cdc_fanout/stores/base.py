from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import ClassVar, Iterator, List, Sequence

from cdc_fanout.models.delivery import ConsumerEvent, ConsumerRecord


class DeliveryStore(ABC):
    """
    Base abstract class for delivery-record stores.

    A store persists the delivery records produced by the message handler.
    Each bulk insert is expected to be atomic, and ``transaction`` must group
    several bulk inserts so that either all of them are committed or none.
    ``durable`` is False for stores whose records do not outlive the process.
    """

    durable: ClassVar[bool] = True

    @abstractmethod
    def insert_consumer_events(self, events: Sequence[ConsumerEvent]) -> int:
        """
        Insert consumer events in one bulk call.

        Returns:
            int: The number of events written.

        Raises:
            PersistenceError: If the insert fails.
        """
        pass

    @abstractmethod
    def insert_consumer_records(self, records: Sequence[ConsumerRecord]) -> int:
        """
        Insert consumer records in one bulk call.

        Returns:
            int: The number of records written.

        Raises:
            PersistenceError: If the insert fails.
        """
        pass

    @abstractmethod
    def list_consumer_events_for_consumer(
        self, consumer_id: str
    ) -> List[ConsumerEvent]:
        pass

    @abstractmethod
    def list_consumer_records_for_consumer(
        self, consumer_id: str
    ) -> List[ConsumerRecord]:
        pass

    @abstractmethod
    def delete_for_consumer(self, consumer_id: str) -> int:
        """Delete every delivery record owned by a consumer."""
        pass

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Group bulk inserts. Stores without transactions run the body as is."""
        yield
