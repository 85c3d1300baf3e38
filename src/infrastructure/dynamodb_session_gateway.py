"""DynamoDB implementation of the Session Gateway."""

import logging
import math
import time
import uuid
from typing import Any, Callable, Dict, List, Optional

import aioboto3
from botocore.exceptions import ClientError

from ..domain.entities.focus_session import SessionLocation, SessionUser
from ..domain.entities.session_record import (
    BuildingPresence,
    FocusSessionRecord,
    SessionStatus,
    UserStats,
)
from ..domain.interfaces.session_gateway import SessionGateway

logger = logging.getLogger(__name__)

# Only an active record may be written to
_ACTIVE_CONDITION = "#status = :active"


def _to_millis(seconds: float) -> int:
    return int(seconds * 1000)


def _is_conditional_failure(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"


class DynamoDBSessionGateway(SessionGateway):
    """DynamoDB gateway for mirroring focus sessions.

    Timestamps are stored as epoch milliseconds. Every write after creation
    is conditional on the record still being active, so late heartbeats and
    duplicate terminal writes are dropped by the table itself.
    """

    def __init__(
        self,
        table_name: str,
        users_table_name: str,
        region_name: str = "us-east-1",
        clock: Callable[[], float] = time.time,
        building_index_name: str = "building_id-index",
    ):
        """Initialize the DynamoDB session gateway.

        Args:
            table_name: The name of the sessions table.
            users_table_name: The name of the users table holding stats.
            region_name: AWS region name (default: us-east-1).
            clock: Wall-clock source in epoch seconds.
            building_index_name: Sessions table index keyed on building_id.
        """
        self.table_name = table_name
        self.users_table_name = users_table_name
        self.region_name = region_name
        self.building_index_name = building_index_name
        self._clock = clock
        self._session = aioboto3.Session()

    async def create(
        self,
        location: SessionLocation,
        user: SessionUser,
        planned_duration: int,
        deep_focus_mode: bool = True,
        group_session_id: Optional[str] = None,
    ) -> str:
        """Put a new active session item.

        Returns:
            str: The new record id.
        """
        now = self._clock()
        record = FocusSessionRecord(
            id=str(uuid.uuid4()),
            user_id=user.user_id,
            display_name=user.display_name or "Anonymous",
            building_id=location.building_id,
            building_name=location.building_name,
            spot_id=location.spot_id,
            planned_duration=planned_duration,
            remaining_seconds=planned_duration,
            started_at=now,
            updated_at=now,
            deep_focus_mode=deep_focus_mode,
            group_session_id=group_session_id,
            is_group_session=group_session_id is not None,
        )
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.put_item(Item=self._record_to_item(record))
        logger.info(f"Created session {record.id} for user {user.user_id}")
        return record.id

    async def heartbeat(self, handle: str, remaining_seconds: int) -> None:
        """Update remaining time; ignored once the session has ended."""
        await self._update_active(
            handle,
            "heartbeat",
            "SET remaining_seconds = :remaining, updated_at = :now",
            {":remaining": remaining_seconds, ":now": _to_millis(self._clock())},
        )

    async def complete(self, handle: str, actual_duration: int, coins_earned: int) -> None:
        """Complete a session and increment the owner's stats.

        Raises:
            ValueError: If the session is not found.
        """
        item = await self._get_item(handle)
        now = _to_millis(self._clock())
        updated = await self._update_active(
            handle,
            "complete",
            "SET #status = :completed, actual_duration = :duration, coins_earned = :coins, "
            "remaining_seconds = :zero, ended_at = :now, updated_at = :now",
            {
                ":completed": SessionStatus.COMPLETED.value,
                ":duration": actual_duration,
                ":coins": coins_earned,
                ":zero": 0,
                ":now": now,
            },
        )
        if not updated:
            return

        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            users = await dynamodb.Table(self.users_table_name)
            await users.update_item(
                Key={"id": item["user_id"]},
                UpdateExpression=(
                    "ADD total_coins :coins, total_focus_time :duration, sessions_completed :one "
                    "SET last_active_at = :now"
                ),
                ExpressionAttributeValues={
                    ":coins": coins_earned,
                    ":duration": actual_duration,
                    ":one": 1,
                    ":now": now,
                },
            )
        logger.info(f"Completed session {handle}")

    async def abandon(self, handle: str) -> None:
        """Mark a session abandoned.

        Raises:
            ValueError: If the session is not found.
        """
        await self._end_without_reward(handle, SessionStatus.ABANDONED)

    async def fail(self, handle: str) -> None:
        """Mark a session failed.

        Raises:
            ValueError: If the session is not found.
        """
        await self._end_without_reward(handle, SessionStatus.FAILED)

    async def get_record(self, handle: str) -> FocusSessionRecord:
        """Retrieve a session record by id.

        Raises:
            ValueError: If the session is not found.
        """
        return self._item_to_record(await self._get_item(handle))

    async def get_building_presence(self, building_id: str, limit: int = 50) -> List[BuildingPresence]:
        """Query the building index for active sessions, most recent first."""
        query = {
            "IndexName": self.building_index_name,
            "KeyConditionExpression": "building_id = :building",
            "FilterExpression": _ACTIVE_CONDITION,
            "ExpressionAttributeNames": {"#status": "status"},
            "ExpressionAttributeValues": {":building": building_id, ":active": SessionStatus.ACTIVE.value},
        }
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.query(**query)
            items = list(response.get("Items", []))

            # Handle pagination if there are more items
            while "LastEvaluatedKey" in response:
                response = await table.query(**query, ExclusiveStartKey=response["LastEvaluatedKey"])
                items.extend(response.get("Items", []))

        items.sort(key=lambda item: int(item["started_at"]), reverse=True)
        return [
            BuildingPresence(
                user_id=item["user_id"],
                display_name=item.get("display_name", "Anonymous"),
                spot_id=item.get("spot_id", ""),
                remaining_seconds=int(item["remaining_seconds"]),
                is_group_session=bool(item.get("is_group_session", False)),
            )
            for item in items[:limit]
        ]

    async def get_user_stats(self, user_id: str) -> UserStats:
        """Read a user's totals from the users table."""
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            users = await dynamodb.Table(self.users_table_name)
            response = await users.get_item(Key={"id": user_id})

        item = response.get("Item")
        if item is None:
            return UserStats()
        last_active_at = item.get("last_active_at")
        return UserStats(
            total_coins=int(item.get("total_coins", 0)),
            total_focus_time=int(item.get("total_focus_time", 0)),
            sessions_completed=int(item.get("sessions_completed", 0)),
            last_active_at=int(last_active_at) / 1000 if last_active_at is not None else None,
        )

    async def _end_without_reward(self, handle: str, status: SessionStatus) -> None:
        item = await self._get_item(handle)
        now = self._clock()
        started_at = int(item["started_at"]) / 1000
        actual_duration = max(0, math.floor(now - started_at))
        await self._update_active(
            handle,
            status.value,
            "SET #status = :ended, actual_duration = :duration, coins_earned = :zero, "
            "remaining_seconds = :zero, ended_at = :now, updated_at = :now",
            {
                ":ended": status.value,
                ":duration": actual_duration,
                ":zero": 0,
                ":now": _to_millis(now),
            },
        )

    async def _get_item(self, handle: str) -> Dict[str, Any]:
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key={"id": handle})

            if "Item" not in response:
                raise ValueError(f"Session with id {handle} not found")

            return response["Item"]

    async def _update_active(
        self,
        handle: str,
        action: str,
        update_expression: str,
        values: Dict[str, Any],
    ) -> bool:
        """Run a conditional update; returns False if the session had ended."""
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            try:
                await table.update_item(
                    Key={"id": handle},
                    UpdateExpression=update_expression,
                    ConditionExpression=_ACTIVE_CONDITION,
                    ExpressionAttributeNames={"#status": "status"},
                    ExpressionAttributeValues={":active": SessionStatus.ACTIVE.value, **values},
                )
            except ClientError as e:
                if _is_conditional_failure(e):
                    logger.warning(f"Ignoring {action} for session {handle}, no longer active")
                    return False
                raise
        return True

    def _record_to_item(self, record: FocusSessionRecord) -> Dict[str, Any]:
        """Convert a FocusSessionRecord to a DynamoDB item.

        Args:
            record: The session record.

        Returns:
            Dict: The DynamoDB item representation.
        """
        item = {
            "id": record.id,
            "user_id": record.user_id,
            "display_name": record.display_name,
            "building_id": record.building_id,
            "building_name": record.building_name,
            "spot_id": record.spot_id,
            "planned_duration": record.planned_duration,
            "remaining_seconds": record.remaining_seconds,
            "started_at": _to_millis(record.started_at),
            "updated_at": _to_millis(record.updated_at),
            "deep_focus_mode": record.deep_focus_mode,
            "status": record.status.value,
            "is_group_session": record.is_group_session,
        }
        if record.group_session_id is not None:
            item["group_session_id"] = record.group_session_id
        return item

    def _item_to_record(self, item: Dict[str, Any]) -> FocusSessionRecord:
        """Convert a DynamoDB item to a FocusSessionRecord.

        Args:
            item: The DynamoDB item.

        Returns:
            FocusSessionRecord: The session record.
        """

        def optional_int(key: str) -> Optional[int]:
            return int(item[key]) if item.get(key) is not None else None

        ended_at = optional_int("ended_at")
        return FocusSessionRecord(
            id=item["id"],
            user_id=item["user_id"],
            display_name=item.get("display_name", "Anonymous"),
            building_id=item["building_id"],
            building_name=item.get("building_name", ""),
            spot_id=item.get("spot_id", ""),
            planned_duration=int(item["planned_duration"]),
            actual_duration=optional_int("actual_duration"),
            remaining_seconds=int(item["remaining_seconds"]),
            started_at=int(item["started_at"]) / 1000,
            ended_at=ended_at / 1000 if ended_at is not None else None,
            updated_at=int(item["updated_at"]) / 1000,
            deep_focus_mode=bool(item.get("deep_focus_mode", True)),
            status=SessionStatus(item["status"]),
            coins_earned=optional_int("coins_earned"),
            group_session_id=item.get("group_session_id"),
            is_group_session=bool(item.get("is_group_session", False)),
        )
