from typing import Dict, Optional, Tuple

from cdc_fanout.state.base import StateManager


class InMemoryStateManager(StateManager):
    durable = False

    def __init__(self, **kwargs):
        self._positions: Dict[Tuple[str, str], str] = {}

    def store(self, source_type: str, source_id: str, position: str) -> bool:
        self._positions[(source_type, source_id)] = position
        return True

    def read(self, source_type: str, source_id: str) -> Optional[str]:
        return self._positions.get((source_type, source_id))
