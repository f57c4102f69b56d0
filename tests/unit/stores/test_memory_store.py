import pytest

from cdc_fanout.models import ConsumerRecord, ConsumerRecordState
from cdc_fanout.stores.memory import InMemoryDeliveryStore


def make_record(consumer_id="c1", commit_lsn=1):
    return ConsumerRecord(
        consumer_id=consumer_id,
        table_oid=123,
        commit_lsn=commit_lsn,
        record_pks=("1",),
    )


class TestInMemoryDeliveryStore:
    """Test cases for the in-memory delivery store"""

    @pytest.fixture
    def store(self):
        return InMemoryDeliveryStore()

    def test_insert_assigns_ack_ids(self, store):
        assert store.insert_consumer_records([make_record(), make_record()]) == 2

        records = store.list_consumer_records_for_consumer("c1")
        assert len(records) == 2
        assert all(r.ack_id for r in records)
        assert records[0].ack_id != records[1].ack_id
        assert all(r.state is ConsumerRecordState.AVAILABLE for r in records)

    def test_list_is_per_consumer(self, store):
        store.insert_consumer_records([make_record("c1"), make_record("c2")])

        assert [r.consumer_id for r in store.list_consumer_records_for_consumer("c2")] == [
            "c2"
        ]
        assert store.list_consumer_events_for_consumer("c1") == []

    def test_delete_for_consumer(self, store):
        store.insert_consumer_records([make_record("c1"), make_record("c2")])

        assert store.delete_for_consumer("c1") == 1
        assert store.list_consumer_records_for_consumer("c1") == []
        assert len(store.list_consumer_records_for_consumer("c2")) == 1

    def test_transaction_commits(self, store):
        with store.transaction():
            store.insert_consumer_records([make_record()])

        assert len(store.list_consumer_records_for_consumer("c1")) == 1

    def test_transaction_rolls_back_on_error(self, store):
        store.insert_consumer_records([make_record(commit_lsn=1)])

        with pytest.raises(RuntimeError):
            with store.transaction():
                store.insert_consumer_records([make_record(commit_lsn=2)])
                raise RuntimeError("boom")

        records = store.list_consumer_records_for_consumer("c1")
        assert [r.commit_lsn for r in records] == [1]
