from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from cdc_fanout.models.change import Change


@dataclass(frozen=True)
class ChangeBatch:
    """A contiguous batch of changes and the source position it ends at."""

    changes: Tuple[Change, ...]
    position: str


class ChangeSource(ABC):
    """
    Base abstract class for change sources.

    A change source hands decoded changes to the core, one batch at a time,
    in commit order. It knows its position so processing can resume after
    the last checkpointed batch.
    """

    @abstractmethod
    def connect(self) -> None:
        """
        Connect to the source.

        Raises:
            DataSourceError: If connection fails.
        """
        pass

    @abstractmethod
    def listen(self) -> Iterator[ChangeBatch]:
        """
        Yield change batches in commit order.

        Raises:
            DataSourceError: If reading fails.
        """
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass

    @abstractmethod
    def get_source_type(self) -> str:
        pass

    @abstractmethod
    def get_source_id(self) -> str:
        pass

    @abstractmethod
    def set_start_position(self, position: Optional[str]) -> None:
        """Only yield batches that end after ``position``."""
        pass
