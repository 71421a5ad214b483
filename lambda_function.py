"""AWS Lambda handler for the calendar events portal."""
import json
import logging
import os
import re
import time
from datetime import datetime, time as dt_time, timedelta
from typing import Any, Dict, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from adapters.exceptions import CalendarExportError, CalendarNotFoundError
from adapters.registry import build_default_registry
from processor.calendar_exporter import export_calendar
from processor.day_bucketer import bucket_events_by_day
from processor.event_aggregator import CalendarEventAggregator
from processor.freshness import evaluate_freshness, serialize_model
from storage.cache import MemoryCache
from storage.calendar_store import DynamoDBCalendarStore
from storage.dynamodb_cache import DynamoDBEventSetCache


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


class BadRequest(ValueError):
    """Request parameters could not be interpreted."""


RESOURCE_ID_PATTERN = re.compile(r'^(\d{8})-(\d+)(?:-(true|false))?$', re.IGNORECASE)
EXPORT_PATH_PATTERN = re.compile(r'^/calendars/([^/]+)/export/?$')
EVENTS_PATH_PATTERN = re.compile(r'^/events/([^/]+)/?$')
MAX_DAYS = 366

# Lives for the life of the Lambda container
_event_cache = None


def get_event_cache(backend: str, table_name: str, default_ttl: int):
    """Return the shared event cache, creating it on first use."""
    global _event_cache
    if _event_cache is None:
        if backend == 'dynamodb':
            _event_cache = DynamoDBEventSetCache(
                table_name=table_name, default_time_to_live=default_ttl
            )
        else:
            _event_cache = MemoryCache('calendar-events', default_time_to_live=default_ttl)
    return _event_cache


def parse_resource_id(resource_id: str) -> Tuple[str, int, bool]:
    """
    Split an event list resource id of the form MMddyyyy-days[-refresh].

    Returns:
        Tuple of (start date string, number of days, refresh flag)

    Raises:
        BadRequest: If the resource id is malformed
    """
    match = RESOURCE_ID_PATTERN.match(resource_id or '')
    if not match:
        raise BadRequest(f"Malformed event list resource id: {resource_id!r}")
    start_date, days, refresh = match.groups()
    days = int(days)
    if days < 1 or days > MAX_DAYS:
        raise BadRequest(f"Day count must be between 1 and {MAX_DAYS}: {days}")
    return start_date, days, (refresh or '').lower() == 'true'


def get_interval(start_date: str, days: int, zone: ZoneInfo) -> Tuple[datetime, datetime]:
    """Interval from local midnight of start_date spanning the given days."""
    try:
        day = datetime.strptime(start_date, '%m%d%Y').date()
    except ValueError as e:
        raise BadRequest(f"Invalid start date: {start_date}") from e
    start = datetime.combine(day, dt_time.min, tzinfo=zone)
    end = datetime.combine(day + timedelta(days=days), dt_time.min, tzinfo=zone)
    return start, end


def get_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise BadRequest(f"Unknown time zone: {name}") from e


def _header(event: Dict[str, Any], name: str) -> Optional[str]:
    headers = event.get('headers') or {}
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return None


def _subject(event: Dict[str, Any]) -> Optional[str]:
    authorizer = (event.get('requestContext') or {}).get('authorizer') or {}
    return authorizer.get('principalId')


def _json_response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body)
    }


def _error_response(status_code: int, message: str, error: Exception, start_time: float) -> Dict[str, Any]:
    return _json_response(status_code, {
        'message': message,
        'error': str(error),
        'error_type': type(error).__name__,
        'duration_seconds': round(time.time() - start_time, 2)
    })


def get_event_list(
    event: Dict[str, Any],
    resource_id: str,
    calendar_store,
    registry,
    default_timezone: str
) -> Dict[str, Any]:
    """
    Build the day-grouped event list, answering 304 when the client's
    validator still matches.
    """
    logger = logging.getLogger(__name__)
    start_time = time.time()

    start_date, days, refresh = parse_resource_id(resource_id)
    params = event.get('queryStringParameters') or {}
    zone = get_zone(params.get('timezone') or default_timezone)
    start, end = get_interval(start_date, days, zone)
    subject = _subject(event)

    errors = []
    aggregator = CalendarEventAggregator(calendar_store, registry)
    display_events = aggregator.get_event_list(errors, subject, start, end, zone)
    buckets = bucket_events_by_day(display_events, zone)

    model = {
        'dateMap': buckets.day_map,
        'dateNames': buckets.label_map,
        'viewName': 'jsonView',
        'errors': errors
    }

    decision = evaluate_freshness(model, refresh, _header(event, 'If-None-Match'))
    headers = {
        'ETag': f'"{decision.etag}"',
        'Cache-Control': f'max-age={decision.max_age}'
    }

    if decision.not_modified:
        logger.debug(
            f"Sending an empty response (due to matched ETag and refresh=false) "
            f"for user '{subject}'"
        )
        return {'statusCode': 304, 'headers': headers, 'body': ''}

    logger.debug(f"Sending a full response for user '{subject}' and refresh={refresh}")
    headers['Content-Type'] = 'application/json'
    duration_ms = int((time.time() - start_time) * 1000)
    logger.info(f"Produced JSON event list in {duration_ms} ms")
    return {'statusCode': 200, 'headers': headers, 'body': serialize_model(model)}


def get_calendar_export(configuration_id: str, calendar_store, registry) -> Dict[str, Any]:
    """Send one calendar as a text/calendar attachment."""
    export = export_calendar(configuration_id, calendar_store, registry)
    return {
        'statusCode': 200,
        'headers': {
            'Content-Type': export.content_type,
            'Content-Disposition': f'attachment; filename={export.filename}'
        },
        'body': export.body
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler for API Gateway proxy requests.

    Routes:
        GET /events/{resourceId}
        GET /calendars/{configurationId}/export

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response
    """
    # Read configuration from environment variables
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    calendar_table = os.environ.get('CALENDAR_TABLE_NAME', 'calendar-configurations')
    cache_backend = os.environ.get('CACHE_BACKEND', 'memory')
    cache_table = os.environ.get('CACHE_TABLE_NAME', 'calendar-event-cache')
    default_timezone = os.environ.get('DEFAULT_TIMEZONE', 'UTC')

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    method = event.get('httpMethod', 'GET')
    path = event.get('path') or ''
    logger.info(f"Request started: {method} {path}")

    if method != 'GET':
        return _json_response(405, {'message': f'Method {method} not allowed'})

    events_match = EVENTS_PATH_PATTERN.match(path)
    export_match = EXPORT_PATH_PATTERN.match(path)
    if not events_match and not export_match:
        return _json_response(404, {'message': f'No route for {path}'})

    try:
        cache_ttl = int(os.environ.get('CACHE_DEFAULT_TTL_SECONDS', '300'))
        calendar_store = DynamoDBCalendarStore(table_name=calendar_table)
        cache = get_event_cache(cache_backend, cache_table, cache_ttl)
        registry = build_default_registry(cache)

        if events_match:
            response = get_event_list(
                event, events_match.group(1), calendar_store, registry, default_timezone
            )
        else:
            response = get_calendar_export(export_match.group(1), calendar_store, registry)

    except BadRequest as e:
        logger.warning(f"Bad request for {path}: {e}")
        return _error_response(400, 'Bad request', e, start_time)

    except CalendarNotFoundError as e:
        logger.warning(str(e))
        return _error_response(404, 'Calendar not found', e, start_time)

    except CalendarExportError as e:
        logger.error(
            f"Calendar export failed for '{e.calendar_name}': {e}",
            extra={'error_type': type(e).__name__}
        )
        return _error_response(500, str(e), e, start_time)

    except Exception as e:
        logger.error(
            f"Request failed: {str(e)}",
            extra={'error_type': type(e).__name__},
            exc_info=True
        )
        return _error_response(500, 'Request failed', e, start_time)

    logger.info(
        f"Request completed: {method} {path} -> {response['statusCode']}",
        extra={'duration_seconds': round(time.time() - start_time, 2)}
    )
    return response
