"""DynamoDB-backed event repository."""
import logging
from datetime import datetime, timezone
from typing import List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from scheduling.decision_engine import LATCH_KINDS, classify_event
from scheduling.errors import MalformedEvent
from scheduling.models import Event

logger = logging.getLogger(__name__)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO 8601 timestamp; naive values are taken as UTC."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class DynamoDBEventRepository:
    """Reads schedule events from the shared DynamoDB event table."""

    def __init__(self, table_name: str):
        """
        Initialize DynamoDB client and table reference.

        Args:
            table_name: Name of the DynamoDB event table
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized DynamoDBEventRepository for table: {table_name}")

    def latch_events(self, now: datetime) -> List[Event]:
        """
        Retrieve BOT DISABLE / BOT ENABLE events that have started.

        Args:
            now: Current instant

        Returns:
            Latch events ordered by start time, newest first
        """
        events = [
            event for event in self._started_events(now)
            if classify_event(event.name) in LATCH_KINDS
        ]
        events.sort(key=lambda event: event.starts_at, reverse=True)
        logger.info(f"Found {len(events)} latch events")
        return events

    def active_events(self, now: datetime) -> List[Event]:
        """
        Retrieve events whose window contains now.

        Args:
            now: Current instant

        Returns:
            Active events ordered by start time, oldest first
        """
        events = [
            event for event in self._started_events(now)
            if event.ends_at is None or now <= event.ends_at
        ]
        events.sort(key=lambda event: event.starts_at)
        logger.info(f"Found {len(events)} active events")
        return events

    def _started_events(self, now: datetime) -> List[Event]:
        """
        Scan for non-deleted, named events with starts_at <= now.

        Start times are compared after parsing, so offset and naive
        timestamps are handled the same as canonical UTC strings.

        Args:
            now: Current instant

        Returns:
            List of Event objects

        Raises:
            MalformedEvent: If a row's timestamps cannot be parsed
        """
        filter_expression = (
            (Attr('deleted_at').not_exists() | Attr('deleted_at').attribute_type('NULL'))
            & Attr('name').exists()
        )

        try:
            response = self.table.scan(FilterExpression=filter_expression)
            items = response.get('Items', [])

            # Handle pagination
            while 'LastEvaluatedKey' in response:
                response = self.table.scan(
                    FilterExpression=filter_expression,
                    ExclusiveStartKey=response['LastEvaluatedKey']
                )
                items.extend(response.get('Items', []))

        except ClientError as e:
            logger.error(f"Error scanning event table {self.table_name}: {e}")
            raise

        events = [self._item_to_event(item) for item in items]
        return [event for event in events if event.starts_at <= now]

    def _item_to_event(self, item: dict) -> Event:
        """
        Convert DynamoDB item to Event object.

        A blank ends_at is read as an open-ended event.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Event object

        Raises:
            MalformedEvent: If starts_at is missing or a timestamp is invalid
        """
        event_id = item.get('event_id')
        ends_at = item.get('ends_at')
        if isinstance(ends_at, str) and not ends_at.strip():
            ends_at = None

        try:
            starts_at = parse_timestamp(item['starts_at'])
            if starts_at is None:
                raise ValueError('starts_at is null')
            return Event(
                event_id=str(event_id),
                name=item['name'],
                starts_at=starts_at,
                ends_at=parse_timestamp(ends_at)
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.error(f"Failed to convert item to Event: {e}")
            raise MalformedEvent(event_id, str(e)) from e
