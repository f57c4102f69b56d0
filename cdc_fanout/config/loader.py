from dataclasses import dataclass
from typing import Optional
import os

from cdc_fanout.filters.base import MissingColumnPolicy
from cdc_fanout.processing.keys import KeyDelimiterPolicy, KeyFormat
from cdc_fanout.utils.exceptions import ConfigurationError
from cdc_fanout.utils.logger import logger

DELIVERY_MODES = ("fanout", "keyed")


@dataclass
class AppConfig(object):
    """
    Application-wide configuration.

    This class represents the configuration for the entire application:
    logging, which delivery path runs, which backends are used, and the
    policy points of filter evaluation and key derivation.
    """

    log_level: str = "INFO"
    log_format: Optional[str] = None
    delivery_mode: str = "fanout"
    consumers_file: Optional[str] = None
    changes_file: Optional[str] = None
    store_type: str = "memory"
    stream_type: str = "memory"
    state_manager_type: str = "memory"
    stream_id: str = "default"
    key_prefix: str = "cdc"
    key_format: KeyFormat = KeyFormat.BASIC
    missing_column_policy: MissingColumnPolicy = MissingColumnPolicy.FAIL
    key_delimiter_policy: KeyDelimiterPolicy = KeyDelimiterPolicy.ESCAPE

    @classmethod
    def load(cls) -> "AppConfig":
        """
        Create an AppConfig instance from environment variables.

        Returns:
            AppConfig: Configured instance with values from environment variables
                      or defaults if the environment variables are not set.

        Raises:
            ConfigurationError: If a variable holds an unsupported value.
        """
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        delivery_mode = os.getenv("DELIVERY_MODE", "fanout").lower()
        if delivery_mode not in DELIVERY_MODES:
            raise ConfigurationError(f"Unsupported delivery mode: {delivery_mode}")

        key_format = KeyFormat.parse(os.getenv("KEY_FORMAT", "basic"))
        missing_column_policy = _parse_enum(
            MissingColumnPolicy, "MISSING_COLUMN_POLICY", "fail"
        )
        key_delimiter_policy = _parse_enum(
            KeyDelimiterPolicy, "KEY_DELIMITER_POLICY", "escape"
        )

        config = cls(
            log_level=log_level,
            log_format=os.getenv("LOG_FORMAT"),
            delivery_mode=delivery_mode,
            consumers_file=os.getenv("CONSUMERS_FILE"),
            changes_file=os.getenv("CHANGES_FILE"),
            store_type=os.getenv("STORE_TYPE", "memory").lower(),
            stream_type=os.getenv("STREAM_TYPE", "memory").lower(),
            state_manager_type=os.getenv("STATE_MANAGER_TYPE", "memory").lower(),
            stream_id=os.getenv("STREAM_ID", "default"),
            key_prefix=os.getenv("KEY_PREFIX", "cdc"),
            key_format=key_format,
            missing_column_policy=missing_column_policy,
            key_delimiter_policy=key_delimiter_policy,
        )

        logger.info(
            f"Config: log_level={log_level}, mode={delivery_mode}, "
            f"key_format={key_format.value}, "
            f"missing_column_policy={missing_column_policy.value}"
        )

        return config


def _parse_enum(enum_class, variable: str, default: str):
    raw = os.getenv(variable, default).strip().lower()
    try:
        return enum_class(raw)
    except ValueError:
        raise ConfigurationError(f"Unsupported value for {variable}: {raw}")
