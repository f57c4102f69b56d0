class CdcFanoutError(Exception):
    """Base exception for all CDC fan-out related errors."""

    pass


class ConfigurationError(CdcFanoutError):
    """Raised when there is an issue with configuration settings."""

    pass


class UnsupportedTypeError(CdcFanoutError):
    """Raised when an unsupported type is requested from a factory."""

    pass


class DataSourceError(CdcFanoutError):
    """Raised when there is an issue reading change batches from a source."""

    pass


class PersistenceError(CdcFanoutError):
    """Raised when delivery records could not be written to the store."""

    pass


class KeyFormatError(CdcFanoutError):
    """Raised when a delivery key cannot be derived for a change."""

    pass


class StreamError(CdcFanoutError):
    """Raised when there is an issue with a keyed stream operation."""

    pass


class StateError(CdcFanoutError):
    """Raised when there is an issue with state management."""

    pass


class ProcessingError(CdcFanoutError):
    """Raised when there is an issue with batch processing."""

    pass


class SerializationError(CdcFanoutError):
    """Raised when there is an issue with data serialization."""

    pass
