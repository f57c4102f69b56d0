from abc import ABC, abstractmethod
from typing import ClassVar, Optional


class StateManager(ABC):
    durable: ClassVar[bool] = True

    @abstractmethod
    def store(self, source_type: str, source_id: str, position: str) -> bool:
        pass

    @abstractmethod
    def read(self, source_type: str, source_id: str) -> Optional[str]:
        pass
