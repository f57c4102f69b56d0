from typing import ClassVar, Dict, Type

from cdc_fanout.stores.base import DeliveryStore
from cdc_fanout.utils.exceptions import UnsupportedTypeError
from cdc_fanout.utils.logger import logger


class DeliveryStoreFactory:
    """
    Factory for creating a DeliveryStore.
    """

    REGISTRY: ClassVar[Dict[str, Type[DeliveryStore]]] = {}

    @classmethod
    def register_store(cls, name: str, store_class: Type[DeliveryStore]) -> None:
        cls.REGISTRY[name.lower()] = store_class

    @classmethod
    def create(cls, store_type: str, **kwargs) -> DeliveryStore:
        """
        Create a DeliveryStore implementation based on requested type.

        Args:
            store_type (str): The type of store.
            **kwargs: Configuration parameters to pass in.

        Returns:
            DeliveryStore: An initialized DeliveryStore implementation.

        Raises:
            UnsupportedTypeError: If the requested store type is not supported.
        """
        normalized_type = store_type.lower()
        logger.debug(f"Creating delivery store of type: {normalized_type}")

        if normalized_type not in cls.REGISTRY:
            supported = list(cls.REGISTRY.keys())
            logger.error(
                f"Unsupported delivery store type: {store_type}. "
                f"Supported types: {supported}"
            )
            raise UnsupportedTypeError(
                f"Unsupported delivery store type: {store_type}."
            )

        store_class = cls.REGISTRY[normalized_type]
        return store_class(**kwargs)
