from typing import Any, Dict, List, Optional
import os
import time
from threading import Lock
import boto3
from boto3.session import Session
from botocore.config import Config
from botocore.exceptions import ClientError
from cdc_fanout.streams.base import KeyedStream, StreamMessage
from cdc_fanout.utils.logger import logger
from cdc_fanout.utils.exceptions import ConfigurationError, StreamError


class DynamoDBKeyedStream(KeyedStream):
    """
    AWS DynamoDB implementation of the KeyedStream interface.

    Messages are stored in a table whose primary key is (``stream_id``,
    ``key``). DynamoDB puts replace an existing item with the same primary
    key, which gives each key last-write-wins semantics.
    """

    # DynamoDB hard limit of 25 put requests per batch_write_item call
    DYNAMODB_MAX_BATCH_SIZE = 25
    MAX_UNPROCESSED_RETRIES = 3

    def __init__(
        self,
        table_name: Optional[str] = None,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
    ):
        """
        Initialize the DynamoDB stream with configuration.

        Args:
            table_name: The table holding stream messages. Defaults to
                STREAM_DYNAMODB_TABLE environment variable.
            region: The AWS region. Defaults to STREAM_DYNAMODB_REGION
                environment variable.
            endpoint_url: The AWS endpoint URL. Defaults to
                STREAM_DYNAMODB_ENDPOINT_URL environment variable.
            aws_access_key_id: The AWS access key ID. Defaults to
                STREAM_DYNAMODB_ACCESS_KEY environment variable.
            aws_secret_access_key: The AWS secret access key. Defaults to
                STREAM_DYNAMODB_SECRET_KEY environment variable.

        Raises:
            ConfigurationError: If the table name or region is missing.
        """
        self.table_name = table_name or os.getenv("STREAM_DYNAMODB_TABLE")
        if not self.table_name:
            raise ConfigurationError("STREAM_DYNAMODB_TABLE is required")

        self.region = region or os.getenv("STREAM_DYNAMODB_REGION")
        if not self.region:
            raise ConfigurationError("STREAM_DYNAMODB_REGION is required")

        self.endpoint_url = endpoint_url or os.getenv("STREAM_DYNAMODB_ENDPOINT_URL")
        self.aws_access_key_id = aws_access_key_id or os.getenv(
            "STREAM_DYNAMODB_ACCESS_KEY"
        )
        self.aws_secret_access_key = aws_secret_access_key or os.getenv(
            "STREAM_DYNAMODB_SECRET_KEY"
        )

        self._client = None
        self._client_lock = Lock()
        self._session = None

    def _create_session(self) -> Session:
        if self._session is None:
            self._session = boto3.session.Session(
                region_name=self.region,
                aws_access_key_id=self.aws_access_key_id,
                aws_secret_access_key=self.aws_secret_access_key,
            )
        return self._session

    def _get_client(self) -> Any:
        """
        Get or create the boto3 DynamoDB client.

        The table is checked on first use.

        Returns:
            Any: The configured boto3 DynamoDB client.
        """
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    session = self._create_session()

                    config = Config(
                        connect_timeout=3,
                        read_timeout=5,
                        retries={"max_attempts": 3},
                        tcp_keepalive=True,
                    )

                    client = session.client(
                        "dynamodb", endpoint_url=self.endpoint_url, config=config
                    )
                    self._ensure_table_exists(client)
                    self._client = client

                    logger.debug(
                        f"Setup DynamoDB stream client: {self.table_name} - "
                        f"{self.endpoint_url} - {self.region}"
                    )

        return self._client

    def _ensure_table_exists(self, client: Any) -> None:
        try:
            client.describe_table(TableName=self.table_name)
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                logger.error(f"Error checking table: {e}")
                raise StreamError(f"Failed to check stream table: {e}")

            error_msg = (
                f"DynamoDB table {self.table_name} does not exist. "
                "Please create it manually."
            )
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

    def upsert_messages(self, stream_id: str, messages: List[StreamMessage]) -> int:
        """
        Upsert messages, respecting the DynamoDB batch size limit.

        A batch may not hold two puts for the same key, so only the last
        message for each key is written.

        Raises:
            StreamError: If any message could not be written.
        """
        if not messages:
            return 0

        client = self._get_client()

        latest: Dict[str, StreamMessage] = {}
        for message in messages:
            latest.pop(message.key, None)
            latest[message.key] = message

        requests = [
            {"PutRequest": {"Item": self._item(stream_id, message)}}
            for message in latest.values()
        ]

        for start in range(0, len(requests), self.DYNAMODB_MAX_BATCH_SIZE):
            self._write_batch(client, requests[start : start + self.DYNAMODB_MAX_BATCH_SIZE])

        logger.debug(f"Upserted {len(requests)} messages into {stream_id}")
        return len(requests)

    def _item(self, stream_id: str, message: StreamMessage) -> Dict[str, Any]:
        return {
            "stream_id": {"S": stream_id},
            "key": {"S": message.key},
            "data": {"S": message.data},
            "updated_at": {"N": str(int(time.time() * 1000))},
        }

    def _write_batch(self, client: Any, requests: List[Dict[str, Any]]) -> None:
        pending = requests
        attempts = 0

        while pending:
            try:
                response = client.batch_write_item(
                    RequestItems={self.table_name: pending}
                )
            except Exception as e:
                logger.error(f"DynamoDB batch_write_item failed: {str(e)}")
                raise StreamError(f"Failed to upsert messages: {str(e)}")

            pending = response.get("UnprocessedItems", {}).get(self.table_name, [])
            if not pending:
                return

            attempts += 1
            if attempts > self.MAX_UNPROCESSED_RETRIES:
                error_msg = f"Failed to upsert {len(pending)} messages after retries"
                logger.error(error_msg)
                raise StreamError(error_msg)

            logger.warning(
                f"{len(pending)} messages unprocessed, retrying (attempt {attempts})"
            )
            time.sleep(0.05 * (2**attempts))

    def close(self) -> None:
        """
        Clean up resources.

        No persistent resources to close for DynamoDB connections.
        """
        pass
