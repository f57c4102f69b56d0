from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

from cdc_fanout.models.change import Action, Change
from cdc_fanout.processing.keys import (
    KeyDelimiterPolicy,
    KeyFormat,
    format_key,
    record_id_for,
)
from cdc_fanout.streams.base import KeyedStream, StreamMessage
from cdc_fanout.utils.exceptions import StreamError
from cdc_fanout.utils.logger import logger
from cdc_fanout.utils.serializer import encode_envelope

if TYPE_CHECKING:
    from cdc_fanout.config.loader import AppConfig


@dataclass(frozen=True)
class KeyedDeliveryContext:
    """Where and under which keys the keyed path writes."""

    stream_id: str
    key_prefix: str
    key_format: KeyFormat = KeyFormat.BASIC
    delimiter_policy: KeyDelimiterPolicy = KeyDelimiterPolicy.ESCAPE

    @classmethod
    def from_config(cls, config: "AppConfig") -> "KeyedDeliveryContext":
        return cls(
            stream_id=config.stream_id,
            key_prefix=config.key_prefix,
            key_format=config.key_format,
            delimiter_policy=config.key_delimiter_policy,
        )


class KeyedUpsertHandler:
    """
    Writes each change as a snapshot under a deterministic key.

    The same row always maps to the same key, so replays overwrite earlier
    writes and the stream holds the last envelope written for each row.
    """

    def __init__(self, stream: KeyedStream) -> None:
        self.stream = stream

    def message_for_upsert(
        self, context: KeyedDeliveryContext, change: Change
    ) -> StreamMessage:
        """
        Build the stream message for a change.

        Raises:
            KeyFormatError: If no key can be derived for the change.
        """
        key = format_key(
            context.key_prefix,
            change,
            record_id_for(change),
            context.key_format,
            context.delimiter_policy,
        )
        deleted = change.action is Action.DELETE
        return StreamMessage(key=key, data=encode_envelope(change.image, deleted))

    def handle_message(self, context: KeyedDeliveryContext, change: Change) -> int:
        """
        Upsert a single change into the context's stream.

        Returns:
            int: The number of messages upserted.

        Raises:
            KeyFormatError: If no key can be derived; the stream is not called.
            StreamError: If the upsert fails.
        """
        message = self.message_for_upsert(context, change)

        try:
            upserted = self.stream.upsert_messages(context.stream_id, [message])
        except StreamError:
            raise
        except Exception as e:
            error_msg = f"Failed to upsert {message.key}: {str(e)}"
            logger.error(error_msg)
            raise StreamError(error_msg)

        logger.debug(f"Upserted {message.key} into stream {context.stream_id}")
        return upserted

    def handle_messages(
        self, context: KeyedDeliveryContext, changes: Sequence[Change]
    ) -> int:
        """Upsert changes one at a time, in order."""
        upserted = 0
        for change in changes:
            upserted += self.handle_message(context, change)
        return upserted
