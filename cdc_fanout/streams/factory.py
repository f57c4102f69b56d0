from typing import Dict, ClassVar, Type
from cdc_fanout.utils.logger import logger
from cdc_fanout.utils.exceptions import UnsupportedTypeError
from cdc_fanout.streams.base import KeyedStream


class StreamFactory:
    """
    Factory for creating KeyedStream implementations.

    This class provides a registry-based factory pattern for creating instances
    of KeyedStream implementations based on a specified type. New stream types
    can be registered with the factory to make them available for creation.
    """

    REGISTRY: ClassVar[Dict[str, Type[KeyedStream]]] = {}

    @classmethod
    def register_stream(cls, name: str, stream_class: Type[KeyedStream]) -> None:
        """
        Register a stream implementation.

        Args:
            name (str): The name to register the stream under.
            stream_class (Type[KeyedStream]): The stream class to register.
        """
        cls.REGISTRY[name.lower()] = stream_class

    @classmethod
    def create(cls, stream_type: str, **kwargs) -> KeyedStream:
        """
        Create a KeyedStream implementation based on requested type.

        Args:
            stream_type (str): The type of stream to create.
            **kwargs: Configuration parameters to pass in.

        Returns:
            KeyedStream: An initialized KeyedStream implementation.

        Raises:
            UnsupportedTypeError: If the requested stream type is not supported.
        """
        normalized_type = stream_type.lower()
        logger.debug(f"Creating stream of type: {normalized_type}")

        if normalized_type not in cls.REGISTRY:
            supported = list(cls.REGISTRY.keys())
            logger.error(
                f"Unsupported stream type: {stream_type}. Supported types: {supported}"
            )
            raise UnsupportedTypeError(
                f"Unsupported stream type: {stream_type}. Supported types: {supported}"
            )

        stream_class = cls.REGISTRY[normalized_type]
        return stream_class(**kwargs)
