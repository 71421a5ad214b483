"""DynamoDB storage for users' calendar configurations."""
import logging
from decimal import Decimal
from typing import Any, List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from processor.models import CalendarConfiguration

logger = logging.getLogger(__name__)


def _from_dynamodb(value: Any) -> Any:
    """Convert DynamoDB Decimal numbers (nested or not) to int/float."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamodb(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamodb(v) for v in value]
    return value


class DynamoDBCalendarStore:
    """Lookup and persistence of CalendarConfiguration records."""

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBCalendarStore for table: {table_name}")

    def get_calendar_configuration(self, configuration_id: str) -> Optional[CalendarConfiguration]:
        try:
            response = self.table.get_item(
                Key={'configuration_id': str(configuration_id)}
            )
        except ClientError as e:
            logger.error(
                f"Error reading calendar configuration {configuration_id}: {e}"
            )
            raise

        item = response.get('Item')
        return self._item_to_configuration(item) if item else None

    def get_calendar_configurations(self, subject: str) -> List[CalendarConfiguration]:
        """
        Retrieve the displayed calendar configurations owned by a subject.

        Args:
            subject: Identifier of the owning user

        Returns:
            List of CalendarConfiguration objects
        """
        logger.info(f"Scanning calendar configurations for subject: {subject}")
        filter_expression = Attr('subject').eq(subject) & Attr('displayed').eq(True)

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
            logger.error(f"Error scanning calendar configurations: {e}")
            raise

        configurations = []
        for item in items:
            configuration = self._item_to_configuration(item)
            if configuration:
                configurations.append(configuration)

        configurations.sort(key=lambda c: c.configuration_id)
        logger.info(f"Retrieved {len(configurations)} calendar configurations")
        return configurations

    def save_calendar_configuration(self, configuration: CalendarConfiguration) -> None:
        item = {
            'configuration_id': configuration.configuration_id,
            'subject': configuration.subject,
            'calendar_name': configuration.calendar_name,
            'class_name': configuration.class_name,
            'parameters': configuration.parameters,
            'displayed': configuration.displayed
        }
        try:
            self.table.put_item(Item=item)
        except ClientError as e:
            logger.error(
                f"Error saving calendar configuration "
                f"{configuration.configuration_id}: {e}"
            )
            raise

    def _item_to_configuration(self, item: dict) -> Optional[CalendarConfiguration]:
        try:
            return CalendarConfiguration(
                configuration_id=item['configuration_id'],
                subject=item['subject'],
                calendar_name=item['calendar_name'],
                class_name=item['class_name'],
                parameters=_from_dynamodb(item.get('parameters', {})),
                displayed=bool(item.get('displayed', True))
            )
        except KeyError as e:
            logger.warning(f"Failed to convert item to CalendarConfiguration: {e}")
            return None
