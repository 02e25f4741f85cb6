from unittest.mock import AsyncMock, MagicMock

import pytest

from mycircle import container
from mycircle.domain.common.exceptions import (
    Blocked,
    ContentViolation,
    NotConnected,
    NotFound,
    Unauthorized,
    ValidationError,
)
from mycircle.realtime.rooms import SocketIORoomBroker


@pytest.mark.asyncio
async def test_send_requires_approved_request(world):
    with pytest.raises(NotConnected):
        await world.chat.send_message("bob", "alice", "hi")
    assert world.broker.events("receive_message") == []

    await world.contacts.create_request("bob", "post-bike")
    with pytest.raises(NotConnected):
        await world.chat.send_message("bob", "alice", "hi")


@pytest.mark.asyncio
async def test_connection_works_in_both_directions(world, connected):
    from_requester = await world.chat.send_message("bob", "alice", "Hi Alice")
    from_owner = await world.chat.send_message("alice", "bob", "Hi Bob")

    assert from_requester.conversation_id == connected
    assert from_owner.conversation_id == connected


@pytest.mark.asyncio
async def test_send_persists_and_pushes_to_recipient(world, connected):
    response = await world.chat.send_message("bob", "alice", "Is the bike still available?")

    assert response.sender_id == "bob"
    assert response.read_by == ["bob"]
    assert response.status == "sent"
    events = world.broker.events("receive_message")
    assert len(events) == 1
    room, payload = events[0]
    assert room == "user:alice"
    assert payload["conversationId"] == connected
    assert payload["message"]["text"] == "Is the bike still available?"
    assert payload["message"]["sender"]["displayName"] == "Bob"


@pytest.mark.asyncio
async def test_send_does_not_create_message_notification(world, connected):
    await world.chat.send_message("bob", "alice", "hello")
    assert world.broker.events("new_notification") == []


@pytest.mark.asyncio
async def test_send_validation(world, connected):
    with pytest.raises(ValidationError):
        await world.chat.send_message("bob", "", "hi")
    with pytest.raises(ValidationError):
        await world.chat.send_message("bob", "bob", "hi")
    with pytest.raises(ValidationError):
        await world.chat.send_message("bob", "alice", "   ")
    with pytest.raises(ValidationError):
        await world.chat.send_message("bob", "alice", "x" * 4001)


@pytest.mark.asyncio
async def test_profanity_blocks_message_before_persistence(world, connected):
    with pytest.raises(ContentViolation) as exc_info:
        await world.chat.send_message("bob", "alice", "you idiot")
    assert exc_info.value.message == "Message blocked: inappropriate language"
    listing = await world.chat.list_messages(connected, "alice")
    assert listing.items == []
    assert world.broker.events("receive_message") == []


@pytest.mark.asyncio
async def test_block_is_symmetric(world, connected):
    await world.identity.block("bob", "alice")
    with pytest.raises(Blocked):
        await world.chat.send_message("alice", "bob", "hi")
    with pytest.raises(Blocked):
        await world.chat.send_message("bob", "alice", "hi")

    await world.identity.unblock("bob", "alice")
    await world.chat.send_message("alice", "bob", "hi again")


@pytest.mark.asyncio
async def test_mark_read_updates_counts_and_notifies_sender(world, connected):
    await world.chat.send_message("bob", "alice", "one")
    await world.chat.send_message("bob", "alice", "two")

    assert await world.chat.unread_total("alice") == 2
    assert await world.chat.unread_total("bob") == 0
    conversations = await world.chat.list_conversations("alice")
    assert conversations.items[0].unread_count == 2
    assert conversations.items[0].last_message.text == "two"

    updated = await world.chat.mark_read(connected, "alice")

    assert updated == 2
    assert await world.chat.unread_total("alice") == 0
    assert world.broker.events("messages_read") == [
        ("user:bob", {"conversationId": connected, "readerId": "alice"})
    ]
    assert world.broker.events("unread_count_update") == [("user:alice", None)]
    assert await world.chat.mark_read(connected, "alice") == 0


@pytest.mark.asyncio
async def test_mark_read_requires_participant(world, connected):
    with pytest.raises(Unauthorized):
        await world.chat.mark_read(connected, "carol")
    with pytest.raises(NotFound):
        await world.chat.mark_read("missing", "alice")


@pytest.mark.asyncio
async def test_messages_listed_chronologically_for_participants_only(world, connected):
    for text in ("first", "second", "third"):
        await world.chat.send_message("alice", "bob", text)

    listing = await world.chat.list_messages(connected, "bob")
    assert [item.text for item in listing.items] == ["first", "second", "third"]
    with pytest.raises(Unauthorized):
        await world.chat.list_messages(connected, "carol")


@pytest.mark.asyncio
async def test_peek_returns_placeholder_without_creating(world):
    placeholder = await world.chat.peek_conversation("carol", "alice")
    assert placeholder.id is None
    assert {item.id for item in placeholder.participants} == {"carol", "alice"}
    assert (await world.chat.list_conversations("carol")).items == []


@pytest.mark.asyncio
async def test_init_chat_is_gated_and_idempotent(world, connected):
    with pytest.raises(NotConnected):
        await world.chat.init_chat("carol", "alice")
    with pytest.raises(ValidationError):
        await world.chat.init_chat("alice", "alice")

    first = await world.chat.init_chat("alice", "bob")
    second = await world.chat.init_chat("bob", "alice")
    assert first.id == second.id == connected


@pytest.mark.asyncio
async def test_delete_conversation_drops_messages(world, connected):
    await world.chat.send_message("bob", "alice", "bye")
    with pytest.raises(Unauthorized):
        await world.chat.delete_conversation(connected, "carol")

    await world.chat.delete_conversation(connected, "alice")

    assert (await world.chat.list_conversations("alice")).items == []
    assert await world.chat.unread_total("alice") == 0


@pytest.mark.asyncio
async def test_emit_failure_does_not_fail_send(world, connected):
    server = MagicMock()
    server.emit = AsyncMock(side_effect=RuntimeError("socket transport down"))
    container.configure(broker=SocketIORoomBroker(server))
    chat = container.get_chat_service()

    response = await chat.send_message("bob", "alice", "still delivered")

    assert response.text == "still delivered"
    server.emit.assert_awaited_once()
    listing = await chat.list_messages(connected, "alice")
    assert [item.text for item in listing.items] == ["still delivered"]
