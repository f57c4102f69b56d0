from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping
import json

from cdc_fanout.models.delivery import ConsumerEvent
from cdc_fanout.utils.exceptions import SerializationError
from cdc_fanout.utils.logger import logger

ENVELOPE_VERSION = 1


class Serializer:
    """
    Utility class for serializing data to JSON-compatible formats.

    Row images coming out of the decoder may hold values JSON has no type for
    (datetimes, decimals, UUIDs, bytes). They are converted to their string
    form so the same payload can be written to any store or stream.
    """

    def serialize(self, data: Any) -> Any:
        """
        Serialize data to a JSON-compatible structure.

        Dataclasses are converted to dicts and enums to their values; other
        non-JSON values fall back to ``str``.

        Args:
            data (Any): The data to serialize.

        Returns:
            Any: The JSON-compatible structure.

        Raises:
            SerializationError: If the data cannot be encoded.
        """
        try:
            return json.loads(json.dumps(data, default=_default))
        except (TypeError, ValueError) as e:
            logger.error(f"Serialization failed: {e}")
            raise SerializationError(f"Failed to serialize data: {e}")

    def dumps(self, data: Any) -> str:
        """Encode data as a JSON string with a stable key order."""
        try:
            return json.dumps(data, default=_default, sort_keys=True)
        except (TypeError, ValueError) as e:
            logger.error(f"Serialization failed: {e}")
            raise SerializationError(f"Failed to serialize data: {e}")


def _default(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return list(value)
    return str(value)


_serializer = Serializer()


def encode_envelope(
    image: Mapping[str, Any], deleted: bool, include_version: bool = False
) -> str:
    """
    Encode the envelope written to keyed streams.

    The envelope is ``{"data": <row image>, "deleted": <bool>}`` with keys
    sorted, so the wire form does not follow the layout of internal types.

    Args:
        image: The row image (post-image, or pre-image for deletes).
        deleted: Whether the row was deleted.
        include_version: Add ``"version": ENVELOPE_VERSION`` to the envelope.

    Returns:
        str: The JSON-encoded envelope.
    """
    envelope: Dict[str, Any] = {"data": dict(image), "deleted": deleted}
    if include_version:
        envelope["version"] = ENVELOPE_VERSION
    return _serializer.dumps(envelope)


def render_consumer_event(event: ConsumerEvent) -> Dict[str, Any]:
    """Render a consumer event the way pull clients receive it."""
    return {
        "ack_id": event.ack_id,
        "data": _serializer.serialize(
            {
                "action": event.data.action,
                "record": event.data.record,
                "changes": event.data.changes,
            }
        ),
    }


def render_receive(events: Iterable[ConsumerEvent]) -> Dict[str, Any]:
    return {"data": [render_consumer_event(event) for event in events]}
