import pytest
import os
from unittest.mock import patch, MagicMock
from botocore.exceptions import ClientError
from cdc_fanout.streams.base import StreamMessage
from cdc_fanout.streams.dynamodb import DynamoDBKeyedStream
from cdc_fanout.utils.exceptions import ConfigurationError, StreamError


class TestDynamoDBKeyedStream:
    """Test cases for the DynamoDB keyed stream"""

    @pytest.fixture
    def mock_client(self):
        """Fixture to provide a mock DynamoDB client."""
        client = MagicMock()
        client.batch_write_item.return_value = {"UnprocessedItems": {}}
        return client

    @pytest.fixture
    def stream(self, mock_client):
        """Fixture to provide a stream with the client already set."""
        with patch.dict(os.environ, {}, clear=True):
            stream = DynamoDBKeyedStream(
                table_name="stream-messages",
                region="eu-west-1",
                endpoint_url="http://localhost:8000",
                aws_access_key_id="test-key-id",
                aws_secret_access_key="test-secret-key",
            )
        stream._client = mock_client
        return stream

    def test_init_from_env_vars(self):
        env_vars = {
            "STREAM_DYNAMODB_TABLE": "from-env",
            "STREAM_DYNAMODB_REGION": "us-east-1",
            "STREAM_DYNAMODB_ENDPOINT_URL": "http://dynamodb.example.com",
            "STREAM_DYNAMODB_ACCESS_KEY": "env-key",
            "STREAM_DYNAMODB_SECRET_KEY": "env-secret",
        }
        with patch.dict(os.environ, env_vars, clear=True):
            stream = DynamoDBKeyedStream()

        assert stream.table_name == "from-env"
        assert stream.region == "us-east-1"
        assert stream.endpoint_url == "http://dynamodb.example.com"
        assert stream.aws_access_key_id == "env-key"
        assert stream.aws_secret_access_key == "env-secret"

    def test_init_with_missing_table(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                DynamoDBKeyedStream(region="eu-west-1")

        assert "STREAM_DYNAMODB_TABLE is required" in str(exc_info.value)

    def test_init_with_missing_region(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                DynamoDBKeyedStream(table_name="t")

        assert "STREAM_DYNAMODB_REGION is required" in str(exc_info.value)

    def test_upsert_messages(self, stream, mock_client):
        messages = [StreamMessage("db.public.orders.1", '{"data": {}, "deleted": false}')]

        assert stream.upsert_messages("orders", messages) == 1

        request_items = mock_client.batch_write_item.call_args.kwargs["RequestItems"]
        [request] = request_items["stream-messages"]
        item = request["PutRequest"]["Item"]
        assert item["stream_id"] == {"S": "orders"}
        assert item["key"] == {"S": "db.public.orders.1"}
        assert item["data"] == {"S": '{"data": {}, "deleted": false}'}
        assert "N" in item["updated_at"]

    def test_upsert_empty(self, stream, mock_client):
        assert stream.upsert_messages("orders", []) == 0
        mock_client.batch_write_item.assert_not_called()

    def test_duplicate_keys_keep_last_message(self, stream, mock_client):
        messages = [
            StreamMessage("a", "first"),
            StreamMessage("b", "only"),
            StreamMessage("a", "second"),
        ]

        assert stream.upsert_messages("s", messages) == 2

        requests = mock_client.batch_write_item.call_args.kwargs["RequestItems"][
            "stream-messages"
        ]
        written = {
            r["PutRequest"]["Item"]["key"]["S"]: r["PutRequest"]["Item"]["data"]["S"]
            for r in requests
        }
        assert written == {"a": "second", "b": "only"}

    def test_batches_respect_size_limit(self, stream, mock_client):
        messages = [StreamMessage(f"k{i}", "v") for i in range(60)]

        assert stream.upsert_messages("s", messages) == 60

        sizes = [
            len(c.kwargs["RequestItems"]["stream-messages"])
            for c in mock_client.batch_write_item.call_args_list
        ]
        assert sizes == [25, 25, 10]

    def test_unprocessed_items_are_retried(self, stream, mock_client):
        unprocessed = [{"PutRequest": {"Item": {"key": {"S": "k0"}}}}]
        mock_client.batch_write_item.side_effect = [
            {"UnprocessedItems": {"stream-messages": unprocessed}},
            {"UnprocessedItems": {}},
        ]

        with patch("cdc_fanout.streams.dynamodb.time.sleep"):
            stream.upsert_messages("s", [StreamMessage("k0", "v")])

        assert mock_client.batch_write_item.call_count == 2
        retry = mock_client.batch_write_item.call_args_list[1]
        assert retry.kwargs["RequestItems"] == {"stream-messages": unprocessed}

    def test_unprocessed_items_exhaust_retries(self, stream, mock_client):
        unprocessed = [{"PutRequest": {"Item": {"key": {"S": "k0"}}}}]
        mock_client.batch_write_item.return_value = {
            "UnprocessedItems": {"stream-messages": unprocessed}
        }

        with patch("cdc_fanout.streams.dynamodb.time.sleep"):
            with pytest.raises(StreamError):
                stream.upsert_messages("s", [StreamMessage("k0", "v")])

        assert (
            mock_client.batch_write_item.call_count
            == DynamoDBKeyedStream.MAX_UNPROCESSED_RETRIES + 1
        )

    def test_client_error_becomes_stream_error(self, stream, mock_client):
        mock_client.batch_write_item.side_effect = ClientError(
            {"Error": {"Code": "ValidationException", "Message": "bad"}},
            "BatchWriteItem",
        )

        with pytest.raises(StreamError) as exc_info:
            stream.upsert_messages("s", [StreamMessage("k", "v")])

        assert "Failed to upsert messages" in str(exc_info.value)

    def test_missing_table_on_first_use(self):
        client = MagicMock()
        client.describe_table.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "missing"}},
            "DescribeTable",
        )
        session = MagicMock()
        session.client.return_value = client

        with patch.dict(os.environ, {}, clear=True):
            stream = DynamoDBKeyedStream(table_name="missing", region="eu-west-1")

        with patch("boto3.session.Session", return_value=session):
            with pytest.raises(ConfigurationError) as exc_info:
                stream.upsert_messages("s", [StreamMessage("k", "v")])

        assert "DynamoDB table missing does not exist" in str(exc_info.value)
        client.batch_write_item.assert_not_called()
