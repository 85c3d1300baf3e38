"""DynamoDB implementation of the Group Coordinator."""

import asyncio
import logging
import time
from typing import Callable, Optional, Set

import aioboto3

from ..domain.entities.session_record import GroupSessionStatus
from ..domain.interfaces.group_coordinator import GroupCoordinator, GroupFailureListener

logger = logging.getLogger(__name__)


class DynamoDBGroupCoordinator(GroupCoordinator):
    """DynamoDB coordinator for shared group sessions.

    Failing a group writes its status; every participant polls the group
    record and is notified once when it reads ``failed``.
    """

    def __init__(
        self,
        table_name: str,
        region_name: str = "us-east-1",
        clock: Callable[[], float] = time.time,
        poll_interval_seconds: float = 5,
    ):
        """Initialize the DynamoDB group coordinator.

        Args:
            table_name: The name of the group sessions table.
            region_name: AWS region name (default: us-east-1).
            clock: Wall-clock source in epoch seconds.
            poll_interval_seconds: Delay between reads of a watched group.
        """
        self.table_name = table_name
        self.region_name = region_name
        self.poll_interval_seconds = poll_interval_seconds
        self._clock = clock
        self._session = aioboto3.Session()
        self._watchers: Set[asyncio.Task] = set()

    async def fail_group(self, group_id: str) -> None:
        """Mark the group session failed for every participant."""
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.update_item(
                Key={"id": group_id},
                UpdateExpression="SET #status = :failed, ended_at = :now",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":failed": GroupSessionStatus.FAILED.value,
                    ":now": int(self._clock() * 1000),
                },
            )
        logger.info(f"Failed group session {group_id}")

    async def get_status(self, group_id: str) -> Optional[GroupSessionStatus]:
        """Read the group status; None if the group record does not exist."""
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key={"id": group_id})

        if "Item" not in response:
            return None
        return GroupSessionStatus(response["Item"]["status"])

    def subscribe(self, group_id: str, listener: GroupFailureListener) -> Callable[[], None]:
        """Poll the group record and call ``listener(group_id)`` once it fails.

        Must be called from inside the event loop.

        Returns:
            A callable that stops watching the group.
        """
        task = asyncio.get_running_loop().create_task(self._watch(group_id, listener))
        self._watchers.add(task)
        task.add_done_callback(self._watchers.discard)

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def close(self) -> None:
        """Stop every watcher."""
        watchers = list(self._watchers)
        for task in watchers:
            task.cancel()
        await asyncio.gather(*watchers, return_exceptions=True)

    async def _watch(self, group_id: str, listener: GroupFailureListener) -> None:
        logger.info(f"Watching group session {group_id}")
        while True:
            try:
                status = await self.get_status(group_id)
            except Exception as e:
                logger.error(f"Error reading group {group_id}: {e}", exc_info=True)
                status = None

            if status == GroupSessionStatus.FAILED:
                logger.info(f"Group session {group_id} failed")
                try:
                    listener(group_id)
                except Exception as e:
                    logger.error(f"Group failure listener raised: {e}", exc_info=True)
                return

            await asyncio.sleep(self.poll_interval_seconds)
