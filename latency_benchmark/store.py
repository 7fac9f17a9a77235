import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from latency_benchmark.errors import StoreUnavailable
from latency_benchmark.items import dict_to_item, item_to_dict
from latency_benchmark.models import Record

logger = logging.getLogger(__name__)


class DynamoRecordStore:
    """Record store backed by a DynamoDB table with a single string hash key."""

    def __init__(self, client, table_name, key_attribute="pk", consistent_read=True):
        self.client = client
        self.table_name = table_name
        self.key_attribute = key_attribute
        self.consistent_read = consistent_read

    @classmethod
    def from_config(cls, config):
        client = boto3.client("dynamodb", config=config.botocore_config())
        return cls(client, config.table_name, key_attribute=config.key_attribute)

    def put(self, record: Record) -> None:
        try:
            self.client.put_item(
                TableName=self.table_name,
                Item=dict_to_item(record.to_dict(self.key_attribute)),
            )
        except (ClientError, BotoCoreError) as err:
            raise StoreUnavailable("put {} failed: {}".format(record.key, err)) from err

    def get(self, key):
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key={self.key_attribute: {"S": key}},
                ConsistentRead=self.consistent_read,
            )
        except (ClientError, BotoCoreError) as err:
            raise StoreUnavailable("get {} failed: {}".format(key, err)) from err
        if "Item" not in response:
            logger.debug("No item for key %s in %s", key, self.table_name)
            return None
        return Record.from_dict(item_to_dict(response["Item"]), self.key_attribute)
