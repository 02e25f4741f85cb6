import pytest

from mycircle.domain.common.exceptions import NotFound, Unauthorized
from mycircle.domain.notifications.models import NotificationDraft, NotificationType, RelatedRef
from mycircle.domain.notifications.repository import InMemoryNotificationRepository
from mycircle.domain.notifications.service import NotificationService


def _draft(recipient="alice", sender="bob", **overrides):
    payload = {
        "recipient_id": recipient,
        "sender_id": sender,
        "type": NotificationType.SYSTEM,
        "title": "Heads up",
        "message": "Something happened",
        "related": RelatedRef.post("post-bike"),
    }
    payload.update(overrides)
    return NotificationDraft(**payload)


class ExplodingRepository(InMemoryNotificationRepository):
    async def insert(self, draft):
        raise RuntimeError("database unavailable")


@pytest.mark.asyncio
async def test_create_persists_then_pushes(world):
    notification = await world.notifications.create(_draft())

    assert notification is not None
    events = world.broker.events("new_notification")
    assert len(events) == 1
    room, payload = events[0]
    assert room == "user:alice"
    assert payload["id"] == notification.id
    assert payload["sender"]["displayName"] == "Bob"
    assert payload["related"] == {"kind": "post", "id": "post-bike"}
    assert payload["read"] is False


@pytest.mark.asyncio
async def test_self_notification_is_skipped(world):
    assert await world.notifications.create(_draft(recipient="alice", sender="alice")) is None
    assert world.broker.events("new_notification") == []
    assert await world.notifications.unread_count("alice") == 0


@pytest.mark.asyncio
async def test_system_notification_without_sender(world):
    notification = await world.notifications.create(_draft(sender=None))
    assert notification is not None
    listing = await world.notifications.list_for("alice")
    assert listing.items[0].sender is None


@pytest.mark.asyncio
async def test_notify_swallows_failures(world):
    service = NotificationService(ExplodingRepository(), world.identity, world.broker)

    assert await service.notify(_draft()) is None
    assert world.broker.events("new_notification") == []


@pytest.mark.asyncio
async def test_listing_is_newest_first_and_capped(world):
    service = NotificationService(InMemoryNotificationRepository(), world.identity, world.broker, list_limit=3)
    for index in range(5):
        await service.create(_draft(title=f"n{index}"))

    listing = await service.list_for("alice")

    assert [item.title for item in listing.items] == ["n4", "n3", "n2"]


@pytest.mark.asyncio
async def test_mark_read_and_delete_are_recipient_only(world):
    notification = await world.notifications.create(_draft())

    with pytest.raises(Unauthorized):
        await world.notifications.mark_read(notification.id, "bob")
    with pytest.raises(NotFound):
        await world.notifications.mark_read("missing", "alice")

    await world.notifications.mark_read(notification.id, "alice")
    assert await world.notifications.unread_count("alice") == 0

    with pytest.raises(Unauthorized):
        await world.notifications.delete(notification.id, "bob")
    await world.notifications.delete(notification.id, "alice")
    assert (await world.notifications.list_for("alice")).items == []


@pytest.mark.asyncio
async def test_mark_all_read_counts_updates(world):
    for _ in range(3):
        await world.notifications.create(_draft())
    await world.notifications.create(_draft(recipient="carol"))

    assert await world.notifications.mark_all_read("alice") == 3
    assert await world.notifications.unread_count("alice") == 0
    assert await world.notifications.unread_count("carol") == 1
    # no realtime push for read-state changes
    assert len(world.broker.events("new_notification")) == 4
