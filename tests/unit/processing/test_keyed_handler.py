import json

import pytest
from unittest.mock import MagicMock

from cdc_fanout.models import Action
from cdc_fanout.processing.keyed_handler import KeyedDeliveryContext, KeyedUpsertHandler
from cdc_fanout.processing.keys import KeyFormat
from cdc_fanout.streams.base import KeyedStream, StreamMessage
from cdc_fanout.streams.memory import InMemoryKeyedStream
from cdc_fanout.utils.exceptions import KeyFormatError, StreamError


class TestKeyedUpsertHandler:
    """Test cases for the keyed upsert path."""

    @pytest.fixture
    def stream(self):
        return InMemoryKeyedStream()

    @pytest.fixture
    def handler(self, stream):
        return KeyedUpsertHandler(stream)

    @pytest.fixture
    def context(self):
        return KeyedDeliveryContext(stream_id="stream-1", key_prefix="mydb")

    def test_upserts_insert(self, handler, stream, context, make_change):
        change = make_change(record={"id": 42, "name": "widget"})

        assert handler.handle_message(context, change) == 1

        data = stream.get("stream-1", "mydb.public.orders.42")
        assert json.loads(data) == {
            "data": {"id": 42, "name": "widget"},
            "deleted": False,
        }

    def test_delete_writes_pre_image(self, handler, stream, context, make_change):
        change = make_change(action=Action.DELETE, old_record={"id": 42, "name": "w"})

        handler.handle_message(context, change)

        data = json.loads(stream.get("stream-1", "mydb.public.orders.42"))
        assert data == {"data": {"id": 42, "name": "w"}, "deleted": True}

    def test_last_write_wins(self, handler, stream, context, make_change):
        """Test that later changes to a row replace earlier ones."""
        insert = make_change(action=Action.INSERT, record={"id": 1, "qty": 1})
        update = make_change(action=Action.UPDATE, record={"id": 1, "qty": 2})
        delete = make_change(action=Action.DELETE, old_record={"id": 1, "qty": 2})

        assert handler.handle_messages(context, [insert, update, delete]) == 3

        assert stream.keys("stream-1") == ["mydb.public.orders.1"]
        data = json.loads(stream.get("stream-1", "mydb.public.orders.1"))
        assert data["deleted"] is True
        assert data["data"] == {"id": 1, "qty": 2}

    def test_rows_of_similarly_named_tables_do_not_overwrite(
        self, handler, stream, context, make_change
    ):
        dotted = make_change(table="my.orders", record={"id": 1, "src": "dotted"})
        underscored = make_change(table="my_orders", record={"id": 1, "src": "plain"})

        handler.handle_messages(context, [dotted, underscored])

        assert stream.keys("stream-1") == [
            "mydb.public.my%2Eorders.1",
            "mydb.public.my_orders.1",
        ]
        dotted_data = json.loads(stream.get("stream-1", "mydb.public.my%2Eorders.1"))
        assert dotted_data["data"]["src"] == "dotted"

    def test_with_operation_keys_are_distinct(self, handler, stream, make_change):
        context = KeyedDeliveryContext(
            stream_id="s", key_prefix="mydb", key_format=KeyFormat.WITH_OPERATION
        )
        insert = make_change(action=Action.INSERT, record={"id": 1})
        delete = make_change(action=Action.DELETE, old_record={"id": 1})

        handler.handle_messages(context, [insert, delete])

        assert stream.keys("s") == [
            "mydb.public.orders.delete.1",
            "mydb.public.orders.insert.1",
        ]

    def test_missing_id_does_not_call_stream(self, context, make_change):
        stream = MagicMock(spec=KeyedStream)
        handler = KeyedUpsertHandler(stream)
        change = make_change(record={"name": "no id"})

        with pytest.raises(KeyFormatError):
            handler.handle_message(context, change)

        stream.upsert_messages.assert_not_called()

    def test_single_stream_call_per_message(self, context, make_change):
        stream = MagicMock(spec=KeyedStream)
        stream.upsert_messages.return_value = 1
        handler = KeyedUpsertHandler(stream)
        change = make_change(record={"id": 5})

        handler.handle_message(context, change)

        stream.upsert_messages.assert_called_once()
        stream_id, messages = stream.upsert_messages.call_args[0]
        assert stream_id == "stream-1"
        assert messages == [
            StreamMessage(
                key="mydb.public.orders.5",
                data='{"data": {"id": 5}, "deleted": false}',
            )
        ]

    def test_stream_failure_is_wrapped(self, context, make_change):
        stream = MagicMock(spec=KeyedStream)
        stream.upsert_messages.side_effect = RuntimeError("unavailable")
        handler = KeyedUpsertHandler(stream)

        with pytest.raises(StreamError) as exc_info:
            handler.handle_message(context, make_change(record={"id": 1}))

        assert "unavailable" in str(exc_info.value)

    def test_stream_error_propagates(self, context, make_change):
        stream = MagicMock(spec=KeyedStream)
        error = StreamError("throttled")
        stream.upsert_messages.side_effect = error
        handler = KeyedUpsertHandler(stream)

        with pytest.raises(StreamError) as exc_info:
            handler.handle_message(context, make_change(record={"id": 1}))

        assert exc_info.value is error


class TestKeyedDeliveryContext:
    def test_from_config(self):
        config = MagicMock()
        config.stream_id = "orders-stream"
        config.key_prefix = "shop"
        config.key_format = KeyFormat.WITH_OPERATION

        context = KeyedDeliveryContext.from_config(config)

        assert context.stream_id == "orders-stream"
        assert context.key_prefix == "shop"
        assert context.key_format is KeyFormat.WITH_OPERATION
        assert context.delimiter_policy is config.key_delimiter_policy
