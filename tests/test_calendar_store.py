"""Unit tests for the DynamoDB calendar configuration store."""
import boto3
import pytest
from moto import mock_aws

from processor.models import CalendarConfiguration
from storage.calendar_store import DynamoDBCalendarStore


@pytest.fixture
def calendar_table(monkeypatch):
    """Create a mock DynamoDB configuration table for testing."""
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
        table = dynamodb.create_table(
            TableName='test-calendar-configurations',
            KeySchema=[
                {'AttributeName': 'configuration_id', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'configuration_id', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        yield table


@pytest.fixture
def calendar_store(calendar_table):
    return DynamoDBCalendarStore('test-calendar-configurations')


def make_configuration(configuration_id: str, subject: str = 'alice', displayed: bool = True):
    return CalendarConfiguration(
        configuration_id=configuration_id,
        subject=subject,
        calendar_name=f'Calendar {configuration_id}',
        class_name='configured',
        parameters={'cache_ttl_seconds': 60, 'events': []},
        displayed=displayed
    )


def test_save_and_get_configuration(calendar_store):
    calendar_store.save_calendar_configuration(make_configuration('1'))

    configuration = calendar_store.get_calendar_configuration('1')

    assert configuration.calendar_name == 'Calendar 1'
    assert configuration.class_name == 'configured'
    assert configuration.parameters['cache_ttl_seconds'] == 60
    assert isinstance(configuration.parameters['cache_ttl_seconds'], int)


def test_get_missing_configuration(calendar_store):
    assert calendar_store.get_calendar_configuration('404') is None


def test_get_configurations_for_subject(calendar_store):
    calendar_store.save_calendar_configuration(make_configuration('1'))
    calendar_store.save_calendar_configuration(make_configuration('2'))
    calendar_store.save_calendar_configuration(make_configuration('3', subject='bob'))
    calendar_store.save_calendar_configuration(make_configuration('4', displayed=False))

    configurations = calendar_store.get_calendar_configurations('alice')

    assert [c.configuration_id for c in configurations] == ['1', '2']


def test_malformed_item_skipped(calendar_store, calendar_table):
    calendar_table.put_item(Item={'configuration_id': '9', 'subject': 'alice', 'displayed': True})
    calendar_store.save_calendar_configuration(make_configuration('1'))

    configurations = calendar_store.get_calendar_configurations('alice')

    assert [c.configuration_id for c in configurations] == ['1']
