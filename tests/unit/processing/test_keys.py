import pytest

from cdc_fanout.models import Action
from cdc_fanout.processing.keys import (
    KeyDelimiterPolicy,
    KeyFormat,
    format_key,
    record_id_for,
    to_key_token,
)
from cdc_fanout.utils.exceptions import ConfigurationError, KeyFormatError


class TestFormatKey:
    """Test cases for stream key derivation."""

    def test_basic_format(self, make_change):
        change = make_change(schema="public", table="orders", action=Action.UPDATE)

        key = format_key("mydb", change, 42, KeyFormat.BASIC)

        assert key == "mydb.public.orders.42"

    def test_with_operation_format(self, make_change):
        change = make_change(schema="public", table="orders", action=Action.DELETE)

        key = format_key("mydb", change, 42, KeyFormat.WITH_OPERATION)

        assert key == "mydb.public.orders.delete.42"

    @pytest.mark.parametrize(
        "action,segment",
        [(Action.INSERT, "insert"), (Action.UPDATE, "update"), (Action.DELETE, "delete")],
    )
    def test_operation_segment_per_action(self, make_change, action, segment):
        change = make_change(action=action)

        assert format_key("db", change, 1, KeyFormat.WITH_OPERATION).split(".")[3] == segment

    def test_deterministic(self, make_change):
        change = make_change()

        first = format_key("mydb", change, "abc", KeyFormat.BASIC)
        second = format_key("mydb", change, "abc", KeyFormat.BASIC)

        assert first == second

    def test_uuid_record_id(self, make_change):
        change = make_change(schema="app", table="users")
        record_id = "0b6e8f4c-8a7d-4b55-9b2c-6f1f3c2a9d10"

        key = format_key("db", change, record_id, KeyFormat.BASIC)

        assert key == f"db.app.users.{record_id}"

    @pytest.mark.parametrize("record_id", [None, ""])
    def test_missing_record_id(self, make_change, record_id):
        with pytest.raises(KeyFormatError):
            format_key("mydb", make_change(), record_id, KeyFormat.BASIC)

    def test_delimiter_in_segment_is_escaped(self, make_change):
        change = make_change(schema="public", table="order.items")

        key = format_key("mydb", change, "1.5", KeyFormat.BASIC)

        assert key == "mydb.public.order%2Eitems.1%2E5"
        assert len(key.split(".")) == 4

    def test_dotted_and_underscored_tables_get_distinct_keys(self, make_change):
        """Test that escaping never maps two different tables to one key."""
        dotted = make_change(schema="public", table="my.orders")
        underscored = make_change(schema="public", table="my_orders")

        dotted_key = format_key("db", dotted, 1, KeyFormat.BASIC)
        underscored_key = format_key("db", underscored, 1, KeyFormat.BASIC)

        assert dotted_key != underscored_key
        assert underscored_key == "db.public.my_orders.1"

    def test_delimiter_in_segment_is_rejected(self, make_change):
        change = make_change(table="order.items")

        with pytest.raises(KeyFormatError):
            format_key(
                "mydb", change, 1, KeyFormat.BASIC, KeyDelimiterPolicy.REJECT
            )

    def test_prefix_is_used_as_given(self, make_change):
        change = make_change(schema="public", table="orders")

        key = format_key("tenant.db", change, 7, KeyFormat.BASIC)

        assert key == "tenant.db.public.orders.7"


class TestKeyTokens:
    def test_plain_token(self):
        assert to_key_token(42) == "42"

    def test_escape(self):
        assert to_key_token("a.b.c") == "a%2Eb%2Ec"

    def test_escape_is_one_to_one(self):
        tokens = {to_key_token(v) for v in ("a.b", "a_b", "a%2Eb", "a%b")}

        assert len(tokens) == 4

    def test_escape_character_is_encoded(self):
        assert to_key_token("50%") == "50%25"

    def test_reject_keeps_other_tokens_verbatim(self):
        assert to_key_token("a_b%", KeyDelimiterPolicy.REJECT) == "a_b%"

    def test_reject(self):
        with pytest.raises(KeyFormatError):
            to_key_token("a.b", KeyDelimiterPolicy.REJECT)


class TestKeyFormatParse:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("basic", KeyFormat.BASIC),
            ("BASIC", KeyFormat.BASIC),
            ("with_operation", KeyFormat.WITH_OPERATION),
            ("withOperation", KeyFormat.WITH_OPERATION),
        ],
    )
    def test_parse(self, value, expected):
        assert KeyFormat.parse(value) is expected

    def test_parse_unknown(self):
        with pytest.raises(ConfigurationError):
            KeyFormat.parse("fancy")


class TestRecordId:
    def test_post_image_id(self, make_change):
        change = make_change(record={"id": 42, "name": "x"})

        assert record_id_for(change) == 42

    def test_delete_uses_pre_image(self, make_change):
        change = make_change(action=Action.DELETE, old_record={"id": 9})

        assert record_id_for(change) == 9

    def test_missing_id_column(self, make_change):
        change = make_change(record={"name": "x"})

        with pytest.raises(KeyFormatError):
            record_id_for(change)
