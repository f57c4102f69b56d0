import os
import boto3
from typing import Any, Optional
from cdc_fanout.utils.logger import logger
from botocore.exceptions import ClientError
from cdc_fanout.state.base import StateManager
from botocore.config import Config
import botocore
import packaging.version
from cdc_fanout.utils.exceptions import ConfigurationError, StateError


class Dynamodb(StateManager):
    """
    Stores replication checkpoints in DynamoDB.

    One item per (source_type, source_id) holds the position of the last
    batch that was fully processed.
    """

    def __init__(self, **kwargs):
        self.region = os.getenv("STATE_DYNAMODB_REGION")
        self.endpoint_url = os.getenv("STATE_DYNAMODB_ENDPOINT_URL")
        self.aws_access_key = os.getenv("STATE_DYNAMODB_ACCESS_KEY")
        self.aws_secret_key = os.getenv("STATE_DYNAMODB_SECRET_KEY")
        self.table_name = os.getenv("STATE_DYNAMODB_TABLE")
        self.connect_timeout = float(
            os.getenv("STATE_DYNAMODB_CONNECT_TIMEOUT", "5")
        )
        self.read_timeout = float(os.getenv("STATE_DYNAMODB_READ_TIMEOUT", "5"))

        if not self.table_name:
            raise ConfigurationError("STATE_DYNAMODB_TABLE is required")

        logger.debug(
            f"DynamoDB configuration: region={self.region}, "
            f"endpoint={self.endpoint_url}, table={self.table_name}"
        )

        self.client = self._create_client()
        self._ensure_table_exists()

    def _create_client(self) -> Any:
        config_params = {
            "connect_timeout": self.connect_timeout,
            "read_timeout": self.read_timeout,
        }

        required_version = "1.27.84"
        current_version = botocore.__version__
        if packaging.version.parse(current_version) >= packaging.version.parse(
            required_version
        ):
            config_params["tcp_keepalive"] = True
            logger.debug("TCP keep-alive enabled for DynamoDB connections")

        my_config = Config(**config_params)

        return boto3.client(
            service_name="dynamodb",
            region_name=self.region,
            endpoint_url=self.endpoint_url,
            aws_access_key_id=self.aws_access_key,
            aws_secret_access_key=self.aws_secret_key,
            config=my_config,
        )

    def _ensure_table_exists(self) -> None:
        try:
            self.client.describe_table(TableName=self.table_name)
            logger.debug(f"DynamoDB table {self.table_name} exists.")
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                logger.error(f"Error checking table: {e}")
                raise

            error_msg = (
                f"DynamoDB table {self.table_name} does not exist. "
                "Please create it manually."
            )
            logger.error(error_msg)
            raise ConfigurationError(error_msg)

    def store(self, source_type: str, source_id: str, position: str) -> bool:
        item = {
            "source_type": {"S": source_type},
            "source_id": {"S": source_id},
            "position": {"S": position},
        }

        try:
            logger.debug(f"Storing state: {item}")
            self.client.put_item(TableName=self.table_name, Item=item)
        except ClientError as e:
            logger.error(f"Failed to store state: {e}")
            raise StateError(f"Failed to store state: {e}")

        logger.info(f"State stored for {source_type}:{source_id} - {position}")
        return True

    def read(self, source_type: str, source_id: str) -> Optional[str]:
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key={
                    "source_type": {"S": source_type},
                    "source_id": {"S": source_id},
                },
            )
        except ClientError as e:
            logger.error(f"Failed to read state: {e}")
            raise StateError(f"Failed to read state: {e}")

        if "Item" not in response:
            logger.info(f"No state found for {source_type}:{source_id}")
            return None

        position = response["Item"].get("position", {}).get("S")
        logger.debug(f"Retrieved state: {position}")
        return position
