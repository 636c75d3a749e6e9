"""DynamoDB-backed automation state store."""
import logging

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from scheduling.errors import AutomationNotFound
from scheduling.models import AutomationRecord

logger = logging.getLogger(__name__)


class DynamoDBAutomationStore:
    """Looks up automations by name and flips their enabled state."""

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB automation table
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBAutomationStore for table: {table_name}")

    def find_by_name(self, name: str) -> AutomationRecord:
        """
        Find an automation by exact name.

        Args:
            name: Automation name

        Returns:
            AutomationRecord with its state field resolved

        Raises:
            AutomationNotFound: If no record has this name
            UnknownStateRepresentation: If the record has no state field
        """
        filter_expression = Attr('name').eq(name)

        try:
            response = self.table.scan(FilterExpression=filter_expression)
            items = response.get('Items', [])

            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    FilterExpression=filter_expression,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

        except ClientError as e:
            logger.error(f"Error scanning automation table {self.table_name}: {e}")
            raise

        if not items:
            raise AutomationNotFound(name)

        # Numeric ids sort before string ids so mixed types never compare
        items.sort(key=lambda item: (isinstance(item['id'], str), item['id']))
        if len(items) > 1:
            logger.warning(
                f"{len(items)} automations named {name!r}, using id={items[0]['id']}"
            )

        item = items[0]
        return AutomationRecord.resolve(item['id'], name, item)

    def set_enabled(self, record: AutomationRecord, enabled: bool) -> None:
        """
        Write the enabled state through the record's own state field.

        Args:
            record: Resolved automation record
            enabled: Desired enabled state
        """
        try:
            self.table.update_item(
                Key={'id': record.automation_id},
                UpdateExpression='SET #field = :value',
                ConditionExpression='attribute_exists(#field)',
                ExpressionAttributeNames={'#field': record.state_field},
                ExpressionAttributeValues={':value': record.stored_value(enabled)}
            )
        except ClientError as e:
            logger.error(
                f"Error updating automation id={record.automation_id}: {e}"
            )
            raise

        logger.info(
            f"Set {record.state_field}={record.stored_value(enabled)} "
            f"on automation id={record.automation_id}"
        )
