from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from cdc_fanout.models import (
    Action,
    Change,
    ColumnFilter,
    Consumer,
    Field,
    FilterType,
    FilterValue,
    MessageKind,
    Operator,
    SourceTable,
)

_sequence = count(1)


@pytest.fixture
def make_change():
    """Factory fixture building changes with sensible defaults."""

    def _make_change(
        table_oid=123,
        action=Action.INSERT,
        fields=None,
        schema="public",
        table="orders",
        ids=None,
        old_record=None,
        record=None,
        commit_timestamp=None,
    ):
        n = next(_sequence)
        if fields is None:
            fields = (
                Field(column_attnum=1, column_name="id", value=n),
                Field(column_attnum=2, column_name="name", value=f"order-{n}"),
            )
        if commit_timestamp is None:
            commit_timestamp = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(
                seconds=n
            )
        if action is Action.DELETE and old_record is None:
            old_record = {f.column_name: f.value for f in fields}

        return Change(
            table_oid=table_oid,
            schema=schema,
            table=table,
            action=action,
            commit_timestamp=commit_timestamp,
            fields=tuple(fields),
            ids=tuple(ids) if ids is not None else (n,),
            record=record,
            old_record=old_record,
        )

    return _make_change


@pytest.fixture
def make_consumer():
    """Factory fixture building consumers subscribed to the given tables."""

    def _make_consumer(consumer_id=None, message_kind=MessageKind.EVENT, source_tables=None):
        if source_tables is None:
            source_tables = [SourceTable(oid=123)]
        return Consumer(
            id=consumer_id or f"consumer-{next(_sequence)}",
            message_kind=message_kind,
            source_tables=tuple(source_tables),
        )

    return _make_consumer


@pytest.fixture
def string_filter():
    """Filter passing when column 1 equals 'test'."""
    return ColumnFilter(
        column_attnum=1,
        operator=Operator.EQ,
        value=FilterValue(FilterType.STRING, "test"),
    )
