"""Tests for DynamoDB session gateway."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from src.domain.entities import SessionLocation, SessionStatus, SessionUser
from src.infrastructure.dynamodb_session_gateway import DynamoDBSessionGateway

NOW = 1_767_225_600.0


def client_error(code):
    return ClientError({"Error": {"Code": code, "Message": code}}, "UpdateItem")


@pytest.fixture
def mock_dynamodb_table():
    """Create a mock DynamoDB table."""
    mock_table = AsyncMock()
    return mock_table


@pytest.fixture
def mock_dynamodb_resource(mock_dynamodb_table):
    """Create a mock DynamoDB resource."""
    mock_resource = MagicMock()
    mock_resource.Table = AsyncMock(return_value=mock_dynamodb_table)
    return mock_resource


@pytest.fixture
def mock_aioboto3_session(mock_dynamodb_resource):
    """Create a mock aioboto3 session."""
    with patch("src.infrastructure.dynamodb_session_gateway.aioboto3.Session") as mock_session_class:
        mock_session_instance = MagicMock()
        mock_session_class.return_value = mock_session_instance

        # Setup async context manager for resource
        mock_session_instance.resource.return_value.__aenter__ = AsyncMock(return_value=mock_dynamodb_resource)
        mock_session_instance.resource.return_value.__aexit__ = AsyncMock(return_value=None)

        yield mock_session_instance


@pytest.fixture
def gateway(mock_aioboto3_session):
    """Create a DynamoDB session gateway instance."""
    return DynamoDBSessionGateway(
        table_name="test-sessions",
        users_table_name="test-users",
        region_name="us-east-1",
        clock=lambda: NOW,
    )


@pytest.fixture
def sample_dynamodb_item():
    """Create a sample DynamoDB item as the table returns it."""
    return {
        "id": "sess-1",
        "user_id": "user-42",
        "display_name": "Ada",
        "building_id": "library",
        "building_name": "Library",
        "spot_id": "table_1",
        "planned_duration": Decimal("1500"),
        "remaining_seconds": Decimal("1500"),
        "started_at": Decimal(str(int((NOW - 300) * 1000))),
        "updated_at": Decimal(str(int((NOW - 300) * 1000))),
        "deep_focus_mode": True,
        "status": "active",
        "is_group_session": False,
    }


class TestDynamoDBSessionGateway:
    """Test cases for DynamoDBSessionGateway."""

    def test_init(self, gateway):
        """Test gateway initialization."""
        assert gateway.table_name == "test-sessions"
        assert gateway.users_table_name == "test-users"
        assert gateway.region_name == "us-east-1"

    @pytest.mark.asyncio
    async def test_create(self, gateway, mock_dynamodb_table):
        """Test creating a session item."""
        location = SessionLocation(building_id="library", building_name="Library", spot_id="table_1")
        user = SessionUser(user_id="user-42", display_name="Ada")

        handle = await gateway.create(location, user, 1500, group_session_id="group-1")

        mock_dynamodb_table.put_item.assert_called_once()
        item = mock_dynamodb_table.put_item.call_args.kwargs["Item"]
        assert item["id"] == handle
        assert item["user_id"] == "user-42"
        assert item["building_id"] == "library"
        assert item["planned_duration"] == 1500
        assert item["remaining_seconds"] == 1500
        assert item["started_at"] == int(NOW * 1000)
        assert item["status"] == "active"
        assert item["group_session_id"] == "group-1"
        assert item["is_group_session"] is True

    @pytest.mark.asyncio
    async def test_heartbeat_is_conditional(self, gateway, mock_dynamodb_table):
        await gateway.heartbeat("sess-1", 1470)

        kwargs = mock_dynamodb_table.update_item.call_args.kwargs
        assert kwargs["Key"] == {"id": "sess-1"}
        assert kwargs["ConditionExpression"] == "#status = :active"
        assert kwargs["ExpressionAttributeValues"][":remaining"] == 1470
        assert kwargs["ExpressionAttributeValues"][":active"] == "active"

    @pytest.mark.asyncio
    async def test_heartbeat_after_end_is_ignored(self, gateway, mock_dynamodb_table):
        mock_dynamodb_table.update_item.side_effect = client_error("ConditionalCheckFailedException")

        await gateway.heartbeat("sess-1", 1470)

        mock_dynamodb_table.update_item.assert_called_once()

    @pytest.mark.asyncio
    async def test_other_client_errors_propagate(self, gateway, mock_dynamodb_table):
        mock_dynamodb_table.update_item.side_effect = client_error("ProvisionedThroughputExceededException")

        with pytest.raises(ClientError):
            await gateway.heartbeat("sess-1", 1470)

    @pytest.mark.asyncio
    async def test_complete_updates_session_and_stats(self, gateway, mock_dynamodb_table, sample_dynamodb_item):
        mock_dynamodb_table.get_item.return_value = {"Item": sample_dynamodb_item}

        await gateway.complete("sess-1", 1500, 250)

        assert mock_dynamodb_table.update_item.call_count == 2
        session_update, stats_update = mock_dynamodb_table.update_item.call_args_list
        assert session_update.kwargs["ExpressionAttributeValues"][":completed"] == "completed"
        assert session_update.kwargs["ExpressionAttributeValues"][":coins"] == 250
        assert stats_update.kwargs["Key"] == {"id": "user-42"}
        assert stats_update.kwargs["UpdateExpression"].startswith("ADD total_coins :coins")

    @pytest.mark.asyncio
    async def test_duplicate_complete_skips_stats(self, gateway, mock_dynamodb_table, sample_dynamodb_item):
        mock_dynamodb_table.get_item.return_value = {"Item": sample_dynamodb_item}
        mock_dynamodb_table.update_item.side_effect = client_error("ConditionalCheckFailedException")

        await gateway.complete("sess-1", 1500, 250)

        mock_dynamodb_table.update_item.assert_called_once()

    @pytest.mark.asyncio
    async def test_abandon_records_elapsed_time(self, gateway, mock_dynamodb_table, sample_dynamodb_item):
        mock_dynamodb_table.get_item.return_value = {"Item": sample_dynamodb_item}

        await gateway.abandon("sess-1")

        values = mock_dynamodb_table.update_item.call_args.kwargs["ExpressionAttributeValues"]
        assert values[":ended"] == "abandoned"
        assert values[":duration"] == 300
        assert values[":zero"] == 0

    @pytest.mark.asyncio
    async def test_fail(self, gateway, mock_dynamodb_table, sample_dynamodb_item):
        mock_dynamodb_table.get_item.return_value = {"Item": sample_dynamodb_item}

        await gateway.fail("sess-1")

        values = mock_dynamodb_table.update_item.call_args.kwargs["ExpressionAttributeValues"]
        assert values[":ended"] == "failed"

    @pytest.mark.asyncio
    async def test_get_record(self, gateway, mock_dynamodb_table, sample_dynamodb_item):
        mock_dynamodb_table.get_item.return_value = {"Item": sample_dynamodb_item}

        record = await gateway.get_record("sess-1")

        assert record.id == "sess-1"
        assert record.planned_duration == 1500
        assert record.started_at == NOW - 300
        assert record.status == SessionStatus.ACTIVE
        assert record.ended_at is None

    @pytest.mark.asyncio
    async def test_get_record_not_found(self, gateway, mock_dynamodb_table):
        mock_dynamodb_table.get_item.return_value = {}

        with pytest.raises(ValueError, match="Session with id nonexistent not found"):
            await gateway.get_record("nonexistent")

    @pytest.mark.asyncio
    async def test_get_building_presence(self, gateway, mock_dynamodb_table, sample_dynamodb_item):
        later = {
            **sample_dynamodb_item,
            "id": "sess-2",
            "user_id": "user-7",
            "spot_id": "table_2",
            "started_at": Decimal(str(int(NOW * 1000))),
            "is_group_session": True,
        }
        mock_dynamodb_table.query.side_effect = [
            {"Items": [sample_dynamodb_item], "LastEvaluatedKey": {"id": "sess-1"}},
            {"Items": [later]},
        ]

        presence = await gateway.get_building_presence("library")

        assert [p.user_id for p in presence] == ["user-7", "user-42"]
        assert presence[0].is_group_session is True
        assert presence[1].remaining_seconds == 1500
        first, second = mock_dynamodb_table.query.call_args_list
        assert first.kwargs["IndexName"] == "building_id-index"
        assert first.kwargs["KeyConditionExpression"] == "building_id = :building"
        assert first.kwargs["ExpressionAttributeValues"] == {":building": "library", ":active": "active"}
        assert second.kwargs["ExclusiveStartKey"] == {"id": "sess-1"}

    @pytest.mark.asyncio
    async def test_get_user_stats(self, gateway, mock_dynamodb_table):
        mock_dynamodb_table.get_item.return_value = {
            "Item": {
                "id": "user-42",
                "total_coins": Decimal("250"),
                "total_focus_time": Decimal("1500"),
                "sessions_completed": Decimal("1"),
                "last_active_at": Decimal(str(int(NOW * 1000))),
            }
        }

        stats = await gateway.get_user_stats("user-42")

        mock_dynamodb_table.get_item.assert_called_once_with(Key={"id": "user-42"})
        assert stats.total_coins == 250
        assert stats.total_focus_time == 1500
        assert stats.sessions_completed == 1
        assert stats.last_active_at == NOW

    @pytest.mark.asyncio
    async def test_get_user_stats_for_new_user(self, gateway, mock_dynamodb_table):
        mock_dynamodb_table.get_item.return_value = {}

        stats = await gateway.get_user_stats("newcomer")

        assert stats.sessions_completed == 0
        assert stats.last_active_at is None
