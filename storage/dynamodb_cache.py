"""DynamoDB-backed cache for calendar event sets."""
import json
import logging
import time
from typing import Callable, Optional

import boto3
from botocore.exceptions import ClientError

from processor.models import CalendarEvent, CalendarEventSet
from storage.cache import CacheElement, resolve_expiration

logger = logging.getLogger(__name__)


class DynamoDBEventSetCache:
    """
    Cache of CalendarEventSet objects stored in a DynamoDB table.

    Items carry an ``expires_at`` epoch-seconds attribute so the table's
    native TTL sweep can remove them. Sweeping is lazy, so reads treat any
    item past its ``expires_at`` as absent.
    """

    def __init__(
        self,
        table_name: str,
        default_time_to_live: int = 300,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB table
            default_time_to_live: Default TTL in seconds (0 = never expire)
            clock: Source of the current time in epoch seconds
        """
        self.table_name = table_name
        self.default_time_to_live = default_time_to_live
        self.clock = clock
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBEventSetCache for table: {table_name}")

    def put(
        self,
        key: str,
        value: CalendarEventSet,
        time_to_live: Optional[int] = None
    ) -> CacheElement:
        """
        Write an event set and read the stored item back.

        Returns:
            CacheElement describing the item as DynamoDB recorded it
        """
        now = int(self.clock())
        expiration = resolve_expiration(now, time_to_live, self.default_time_to_live)
        item = {
            'cache_key': key,
            'events': json.dumps(
                [event.to_dict() for event in value.events], sort_keys=True
            ),
            'created_at': now
        }
        if expiration is not None:
            item['expires_at'] = int(expiration)

        try:
            self.table.put_item(Item=item)
            response = self.table.get_item(
                Key={'cache_key': key}, ConsistentRead=True
            )
        except ClientError as e:
            logger.error(f"Error writing cache item '{key}': {e}")
            raise

        stored = response.get('Item')
        if stored is None:
            raise KeyError(f"Cache item '{key}' missing immediately after write")
        return self._item_to_element(stored)

    def get_element(self, key: str) -> Optional[CacheElement]:
        try:
            response = self.table.get_item(Key={'cache_key': key})
        except ClientError as e:
            logger.error(f"Error reading cache item '{key}': {e}")
            raise

        item = response.get('Item')
        if item is None:
            return None
        element = self._item_to_element(item)
        if element.is_expired(self.clock()):
            logger.debug(f"Cache item '{key}' expired, awaiting TTL sweep")
            return None
        return element

    def get(self, key: str) -> Optional[CalendarEventSet]:
        element = self.get_element(key)
        return element.value if element else None

    def remove(self, key: str) -> bool:
        try:
            response = self.table.delete_item(
                Key={'cache_key': key}, ReturnValues='ALL_OLD'
            )
        except ClientError as e:
            logger.error(f"Error deleting cache item '{key}': {e}")
            raise
        return 'Attributes' in response

    def _item_to_element(self, item: dict) -> CacheElement:
        """
        Convert DynamoDB item to a CacheElement holding a CalendarEventSet.

        Args:
            item: DynamoDB item dictionary

        Returns:
            CacheElement with the decoded event set as its value
        """
        expires_at = item.get('expires_at')
        expiration_time = float(expires_at) if expires_at is not None else None

        event_set = CalendarEventSet(
            item['cache_key'],
            (CalendarEvent.from_dict(data) for data in json.loads(item['events']))
        )
        event_set.set_expiration_time(expiration_time)

        return CacheElement(
            key=item['cache_key'],
            value=event_set,
            creation_time=float(item['created_at']),
            expiration_time=expiration_time
        )
