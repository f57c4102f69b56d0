from enum import Enum
from typing import Any

from cdc_fanout.models.change import Change
from cdc_fanout.utils.exceptions import ConfigurationError, KeyFormatError

KEY_DELIMITER = "."

# The escape character is encoded first
_ESCAPES = (("%", "%25"), (KEY_DELIMITER, "%2E"))


class KeyFormat(str, Enum):
    """Key naming scheme for the keyed upsert path."""

    BASIC = "basic"
    WITH_OPERATION = "with_operation"

    @classmethod
    def parse(cls, value: str) -> "KeyFormat":
        normalized = value.strip().lower()
        if normalized == "withoperation":
            normalized = cls.WITH_OPERATION.value
        try:
            return cls(normalized)
        except ValueError:
            raise ConfigurationError(f"Unsupported key format: {value}")


class KeyDelimiterPolicy(str, Enum):
    """What to do with key tokens that contain the delimiter."""

    ESCAPE = "escape"
    REJECT = "reject"


def to_key_token(
    value: Any, delimiter_policy: KeyDelimiterPolicy = KeyDelimiterPolicy.ESCAPE
) -> str:
    """
    Turn a value into a key segment that cannot be mistaken for two segments.

    Under ``ESCAPE`` the delimiter and the escape character are
    percent-encoded (``.`` becomes ``%2E``, ``%`` becomes ``%25``), so two
    different values never give the same token.

    Raises:
        KeyFormatError: If the token contains the delimiter and the policy is
            ``REJECT``.
    """
    token = str(value)
    if delimiter_policy is KeyDelimiterPolicy.REJECT:
        if KEY_DELIMITER in token:
            raise KeyFormatError(
                f"Key segment {token!r} contains the delimiter {KEY_DELIMITER!r}"
            )
        return token

    for raw, escaped in _ESCAPES:
        token = token.replace(raw, escaped)
    return token


def format_key(
    key_prefix: str,
    change: Change,
    record_id: Any,
    key_format: KeyFormat,
    delimiter_policy: KeyDelimiterPolicy = KeyDelimiterPolicy.ESCAPE,
) -> str:
    """
    Derive the stream key for a change.

    ``basic`` keys are ``prefix.schema.table.record_id``; ``with_operation``
    keys insert the change's action before the record id. The prefix is used
    as given; the other segments are sanitized with ``to_key_token``.

    Args:
        key_prefix: The key prefix, usually the source database name.
        change: The change the key is for.
        record_id: The row identity.
        key_format: The naming scheme.
        delimiter_policy: How to treat segments containing the delimiter.

    Returns:
        str: The key. Identical inputs always give the identical key.

    Raises:
        KeyFormatError: If the record id is missing or a segment is rejected.
    """
    if record_id is None or record_id == "":
        raise KeyFormatError(
            f"Missing record id for {change.schema}.{change.table}"
        )

    segments = [
        key_prefix,
        to_key_token(change.schema, delimiter_policy),
        to_key_token(change.table, delimiter_policy),
    ]
    if key_format is KeyFormat.WITH_OPERATION:
        segments.append(change.action.value)
    segments.append(to_key_token(record_id, delimiter_policy))

    return KEY_DELIMITER.join(segments)


def record_id_for(change: Change, id_column: str = "id") -> Any:
    """
    Return the row identity: the id column of the post-image, or of the
    pre-image for deletes.

    Raises:
        KeyFormatError: If the row image has no id column.
    """
    image = change.image or {}
    if id_column not in image:
        raise KeyFormatError(
            f"Change on {change.schema}.{change.table} has no {id_column!r} column"
        )
    return image[id_column]
