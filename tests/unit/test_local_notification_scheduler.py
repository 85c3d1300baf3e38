"""Tests for LocalNotificationScheduler."""

import asyncio

import pytest

from src.infrastructure.local_notification_scheduler import LocalNotificationScheduler


@pytest.mark.asyncio
async def test_completion_notification_is_delivered():
    delivered = []
    scheduler = LocalNotificationScheduler(on_deliver=delivered.append)

    notification_id = await scheduler.schedule_completion(0.01)
    assert [n.id for n in scheduler.get_scheduled()] == [notification_id]

    await asyncio.sleep(0.05)

    assert [n.kind for n in delivered] == ["completion"]
    assert delivered[0].title == "Focus Session Complete! 🎉"
    assert scheduler.get_scheduled() == []


@pytest.mark.asyncio
async def test_reminder_notification():
    scheduler = LocalNotificationScheduler()

    await scheduler.schedule_reminder(0.01)
    await asyncio.sleep(0.05)

    assert scheduler.delivered[0].title == "Come back to focus!"
    assert scheduler.delivered[0].body == "Your session is still running..."


@pytest.mark.asyncio
async def test_cancel_all():
    scheduler = LocalNotificationScheduler()
    await scheduler.schedule_completion(0.02)
    await scheduler.schedule_reminder(0.01)

    await scheduler.cancel_all()
    await asyncio.sleep(0.05)

    assert scheduler.delivered == []
    assert scheduler.get_scheduled() == []


@pytest.mark.asyncio
async def test_permission_denied():
    scheduler = LocalNotificationScheduler(permission_granted=False)

    assert await scheduler.request_permissions() is False
    assert await scheduler.schedule_completion(10) is None
    assert scheduler.get_scheduled() == []
