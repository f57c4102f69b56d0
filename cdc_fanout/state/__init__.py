from cdc_fanout.state.base import StateManager
from cdc_fanout.state.factory import StateManagerFactory
from cdc_fanout.state.memory import InMemoryStateManager
from cdc_fanout.state.dynamodb import Dynamodb

# Register the state managers with the factory
StateManagerFactory.register_state_manager("memory", InMemoryStateManager)
StateManagerFactory.register_state_manager("dynamodb", Dynamodb)

__all__ = ["StateManager", "StateManagerFactory", "InMemoryStateManager", "Dynamodb"]
