from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from cdc_fanout.utils.exceptions import DataSourceError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class Action(str, Enum):
    """Row-level operation carried by a change."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Field:
    """A single decoded column value."""

    column_attnum: int
    column_name: str
    value: Any = None


@dataclass(frozen=True)
class Change:
    """
    A decoded row-level mutation produced by logical replication.

    The action tag decides which row image is meaningful: inserts and updates
    carry the post-image in ``record`` (derived from ``fields`` when the
    decoder does not supply it), deletes carry the pre-image in
    ``old_record``. Updates may also carry ``old_record`` when the source
    table tracks prior values.
    """

    table_oid: int
    schema: str
    table: str
    action: Action
    commit_timestamp: datetime
    fields: Tuple[Field, ...] = ()
    ids: Tuple[Any, ...] = ()
    record: Optional[Mapping[str, Any]] = None
    old_record: Optional[Mapping[str, Any]] = None

    def __post_init__(self) -> None:
        # Raises ValueError for unknown actions
        object.__setattr__(self, "action", Action(self.action))

        if self.action is Action.DELETE:
            if self.old_record is None:
                raise ValueError("delete changes require an old_record")
        elif self.record is None:
            object.__setattr__(
                self, "record", {f.column_name: f.value for f in self.fields}
            )

    @property
    def image(self) -> Mapping[str, Any]:
        """The row image delivered downstream: pre-image for deletes."""
        if self.action is Action.DELETE:
            return self.old_record
        return self.record

    @property
    def commit_lsn(self) -> int:
        """Commit timestamp as integer microseconds since the epoch."""
        return to_unix_microseconds(self.commit_timestamp)

    @property
    def record_pks(self) -> Tuple[str, ...]:
        return tuple(str(pk) for pk in self.ids)

    def field_for(self, column_attnum: int) -> Optional[Field]:
        for f in self.fields:
            if f.column_attnum == column_attnum:
                return f
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Change":
        """
        Build a change from the decoder's JSON representation.

        Args:
            data: Mapping with ``table_oid``, ``schema``, ``table``, ``action``,
                ``commit_timestamp`` (ISO-8601) and optionally ``fields``,
                ``ids``, ``record`` and ``old_record``.

        Raises:
            DataSourceError: If the mapping is not a valid change.
        """
        try:
            commit_timestamp = data["commit_timestamp"]
            if isinstance(commit_timestamp, str):
                commit_timestamp = parse_timestamp(commit_timestamp)

            fields = tuple(
                Field(
                    column_attnum=int(f["column_attnum"]),
                    column_name=f["column_name"],
                    value=f.get("value"),
                )
                for f in data.get("fields", [])
            )

            return cls(
                table_oid=int(data["table_oid"]),
                schema=data["schema"],
                table=data["table"],
                action=Action(data["action"]),
                commit_timestamp=commit_timestamp,
                fields=fields,
                ids=tuple(data.get("ids", [])),
                record=data.get("record"),
                old_record=data.get("old_record"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DataSourceError(f"Invalid change payload: {e}")


def to_unix_microseconds(value: datetime) -> int:
    """Convert a datetime to microseconds since the epoch; naive means UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return (value - EPOCH) // timedelta(microseconds=1)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z`` for UTC."""
    value = value.strip()
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
