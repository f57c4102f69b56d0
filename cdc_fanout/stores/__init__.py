from cdc_fanout.stores.base import DeliveryStore
from cdc_fanout.stores.factory import DeliveryStoreFactory
from cdc_fanout.stores.memory import InMemoryDeliveryStore

# Register the in-memory store with the factory
DeliveryStoreFactory.register_store("memory", InMemoryDeliveryStore)

__all__ = ["DeliveryStore", "DeliveryStoreFactory", "InMemoryDeliveryStore"]
