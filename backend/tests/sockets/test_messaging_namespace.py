from unittest.mock import AsyncMock

import pytest
import socketio

from mycircle.infra import jwt as jwt_helper
from mycircle.realtime.gateway import MessagingNamespace


def _scope(headers: dict[str, str] | None = None) -> dict:
	raw = [(key.lower().encode(), value.encode()) for key, value in (headers or {}).items()]
	return {"asgi.scope": {"headers": raw}}


def _namespace() -> MessagingNamespace:
	server = socketio.AsyncServer(async_mode="asgi")
	namespace = MessagingNamespace()
	server.register_namespace(namespace)
	namespace.emit = AsyncMock()
	return namespace


async def _connect(namespace: MessagingNamespace, sid: str, user_id: str) -> None:
	await namespace.trigger_event("connect", sid, _scope({"X-User-Id": user_id}))


@pytest.mark.asyncio
async def test_connect_requires_identity(world):
	namespace = _namespace()
	with pytest.raises(socketio.exceptions.ConnectionRefusedError):
		await namespace.trigger_event("connect", "sid-1", _scope())


@pytest.mark.asyncio
async def test_connect_rejects_dev_header_outside_dev(world):
	from mycircle.settings import settings

	settings.environment = "production"
	namespace = _namespace()
	with pytest.raises(socketio.exceptions.ConnectionRefusedError):
		await _connect(namespace, "sid-1", "alice")


@pytest.mark.asyncio
async def test_connect_accepts_bearer_token(world):
	from mycircle.settings import settings

	settings.environment = "production"
	token = jwt_helper.encode_access({"sub": "alice"})
	namespace = _namespace()
	await namespace.trigger_event("connect", "sid-1", _scope({"Authorization": f"Bearer {token}"}))

	ack = await namespace.trigger_event("join", "sid-1", "alice")
	assert ack == {"ok": True}


@pytest.mark.asyncio
async def test_join_enters_user_room_and_broadcasts_first_connection(world):
	namespace = _namespace()
	await _connect(namespace, "sid-1", "alice")

	ack = await namespace.trigger_event("join", "sid-1", {"userId": "alice"})

	assert ack == {"ok": True}
	assert "sid-1" in world.broker.rooms["user:alice"]
	assert world.presence.is_online("alice")
	namespace.emit.assert_awaited_once_with("user_online", "alice", skip_sid="sid-1")

	await _connect(namespace, "sid-2", "alice")
	await namespace.trigger_event("join", "sid-2", "alice")
	assert namespace.emit.await_count == 1


@pytest.mark.asyncio
async def test_join_for_another_user_is_refused(world):
	namespace = _namespace()
	await _connect(namespace, "sid-1", "alice")

	ack = await namespace.trigger_event("join", "sid-1", {"userId": "bob"})

	assert ack == {"ok": False, "detail": "forbidden"}
	assert "user:bob" not in world.broker.rooms
	assert not world.presence.is_online("bob")


@pytest.mark.asyncio
async def test_offline_broadcast_only_after_last_connection(world):
	namespace = _namespace()
	for sid in ("sid-1", "sid-2"):
		await _connect(namespace, sid, "alice")
		await namespace.trigger_event("join", sid, "alice")
	namespace.emit.reset_mock()

	await namespace.trigger_event("disconnect", "sid-1")
	namespace.emit.assert_not_awaited()
	assert world.presence.is_online("alice")

	await namespace.trigger_event("disconnect", "sid-2")
	namespace.emit.assert_awaited_once_with("user_offline", "alice", skip_sid="sid-2")
	assert not world.presence.is_online("alice")


@pytest.mark.asyncio
async def test_join_conversation_is_participant_only(world, connected):
	namespace = _namespace()
	await _connect(namespace, "sid-bob", "bob")
	await _connect(namespace, "sid-carol", "carol")

	assert await namespace.trigger_event("join_conversation", "sid-bob", {"conversationId": connected}) == {"ok": True}
	denied = await namespace.trigger_event("join_conversation", "sid-carol", {"conversationId": connected})

	assert denied == {"ok": False, "detail": "forbidden"}
	assert world.broker.rooms[f"conversation:{connected}"] == {"sid-bob"}

	await namespace.trigger_event("leave_conversation", "sid-bob", connected)
	assert world.broker.rooms[f"conversation:{connected}"] == set()


@pytest.mark.asyncio
async def test_typing_relayed_to_conversation_room_without_echo(world, connected):
	namespace = _namespace()
	await _connect(namespace, "sid-bob", "bob")
	await namespace.trigger_event("join_conversation", "sid-bob", {"conversationId": connected})

	await namespace.trigger_event("typing_start", "sid-bob", {"conversationId": connected})
	await namespace.trigger_event("typing_stop", "sid-bob", {"conversationId": connected})

	assert world.broker.emits == [
		(f"conversation:{connected}", "user_typing", {"userId": "bob", "conversationId": connected}, "sid-bob"),
		(f"conversation:{connected}", "user_stop_typing", {"userId": "bob", "conversationId": connected}, "sid-bob"),
	]


@pytest.mark.asyncio
async def test_typing_falls_back_to_recipient_room(world, connected):
	namespace = _namespace()
	await _connect(namespace, "sid-bob", "bob")

	await namespace.trigger_event("typing_start", "sid-bob", {"conversationId": connected, "recipientId": "alice"})

	assert world.broker.events("user_typing") == [("user:alice", {"userId": "bob", "conversationId": connected})]


@pytest.mark.asyncio
async def test_typing_from_unconnected_user_is_dropped(world, connected):
	namespace = _namespace()
	await _connect(namespace, "sid-carol", "carol")
	await namespace.trigger_event("join", "sid-carol", "carol")

	await namespace.trigger_event("typing_start", "sid-carol", {"conversationId": "made-up", "recipientId": "alice"})

	assert world.broker.events("user_typing") == []


@pytest.mark.asyncio
async def test_typing_after_block_is_dropped(world, connected):
	await world.identity.block("alice", "bob")
	namespace = _namespace()
	await _connect(namespace, "sid-bob", "bob")

	await namespace.trigger_event("typing_start", "sid-bob", {"conversationId": connected, "recipientId": "alice"})
	await namespace.trigger_event("typing_stop", "sid-bob", {"conversationId": connected, "recipientId": "alice"})

	assert world.broker.events("user_typing") == []
	assert world.broker.events("user_stop_typing") == []


@pytest.mark.asyncio
async def test_read_messages_marks_and_acks(world, connected):
	await world.chat.send_message("bob", "alice", "ping")
	namespace = _namespace()
	await _connect(namespace, "sid-alice", "alice")

	ack = await namespace.trigger_event("read_messages", "sid-alice", {"conversationId": connected})

	assert ack == {"ok": True, "updated": 1}
	assert await world.chat.unread_total("alice") == 0
	assert world.broker.events("messages_read") == [("user:bob", {"conversationId": connected, "readerId": "alice"})]


@pytest.mark.asyncio
async def test_read_messages_outsider_gets_error_ack(world, connected):
	namespace = _namespace()
	await _connect(namespace, "sid-carol", "carol")

	ack = await namespace.trigger_event("read_messages", "sid-carol", {"conversationId": connected})

	assert ack == {"ok": False, "detail": "unauthorized"}
