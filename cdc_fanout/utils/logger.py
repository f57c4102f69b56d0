import logging
import os
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class Logger:
    """
    Singleton logger class for consistent logging across the application.

    Every module logs through the same named logger so a single level change
    (for example from the LOG_LEVEL environment variable) applies to the
    matcher, the handlers and the worker loop alike. The line format comes
    from LOG_FORMAT and can be replaced at runtime with ``update_format``.
    """

    _instance = None

    def __init__(
        self,
        log_level: str = "INFO",
        logger_name: Optional[str] = None,
        log_format: Optional[str] = None,
    ):
        """
        Initialize the logger.

        Args:
            log_level (str): The logging level (e.g., "INFO", "DEBUG").
            logger_name (str, optional): Defaults to APP_NAME or "cdc-fanout".
            log_format (str, optional): A ``logging.Formatter`` format string.
                Defaults to LOG_FORMAT or DEFAULT_FORMAT.
        """
        self.logger_name = logger_name or os.getenv("APP_NAME", "cdc-fanout")
        self.logger = logging.getLogger(self.logger_name)
        self.logger.propagate = False

        self.handler = logging.StreamHandler()
        self.logger.handlers.clear()
        self.logger.addHandler(self.handler)

        self.set_format(log_format or os.getenv("LOG_FORMAT", DEFAULT_FORMAT))
        self.set_level(log_level)

    def set_level(self, log_level: str) -> None:
        level = getattr(logging, log_level.upper(), logging.INFO)
        self.logger.setLevel(level)
        self.logger.debug(f"Logging level set to {log_level}")

    def set_format(self, log_format: str) -> None:
        self.handler.setFormatter(logging.Formatter(log_format))

    @classmethod
    def get_logger(cls, log_level: str = "INFO") -> logging.Logger:
        """Get the shared logger, creating it on first use."""
        if cls._instance is None:
            cls._instance = Logger(log_level=log_level)
        return cls._instance.logger

    @classmethod
    def update_level(cls, log_level: str) -> None:
        if cls._instance is None:
            cls.get_logger(log_level=log_level)
        else:
            cls._instance.set_level(log_level)

    @classmethod
    def update_format(cls, log_format: str) -> None:
        """Replace the line format of the shared logger."""
        cls.get_logger()
        cls._instance.set_format(log_format)


logger = Logger.get_logger()
