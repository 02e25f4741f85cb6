"""Socket.IO namespace for presence, typing relay and read receipts."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Set

import socketio

from mycircle import container
from mycircle.domain.common.exceptions import CircleError, NotConnected
from mycircle.infra.auth import AuthenticatedUser, resolve_handshake_identity
from mycircle.obs import logging as obs_logging
from mycircle.obs import metrics as obs_metrics
from mycircle.realtime.rooms import NAMESPACE, conversation_room, user_room

LOGGER = logging.getLogger(__name__)

_TYPING_EVENTS = {"typing_start": "user_typing", "typing_stop": "user_stop_typing"}


def _headers(scope: dict) -> Dict[str, str]:
	return {key.decode().lower(): value.decode() for key, value in scope.get("headers", [])}


def _field(payload: Any, name: str) -> Optional[str]:
	"""Accept either a bare id or `{name: id}` from the client."""
	if isinstance(payload, dict):
		value = payload.get(name)
	else:
		value = payload
	if value is None:
		return None
	value = str(value).strip()
	return value or None


def _ok() -> dict:
	return {"ok": True}


def _error(detail: str) -> dict:
	return {"ok": False, "detail": detail}


class MessagingNamespace(socketio.AsyncNamespace):
	"""Single namespace serving `user:{id}` and `conversation:{id}` rooms."""

	def __init__(self, namespace: str = NAMESPACE) -> None:
		super().__init__(namespace)
		self._sessions: Dict[str, AuthenticatedUser] = {}
		self._conversations: Dict[str, Set[str]] = {}

	async def on_connect(self, sid: str, environ: dict, auth: Optional[dict] = None) -> None:
		scope = environ.get("asgi.scope", environ)
		user = resolve_handshake_identity(auth or environ.get("auth") or {}, _headers(scope))
		if user is None:
			raise socketio.exceptions.ConnectionRefusedError("unauthorized")
		obs_metrics.socket_connected(self.namespace)
		self._sessions[sid] = user
		self._conversations[sid] = set()
		LOGGER.info("socket connected", extra={"sid": sid, "user_id": user.id})

	async def on_disconnect(self, sid: str, *args: Any) -> None:
		user = self._sessions.pop(sid, None)
		self._conversations.pop(sid, None)
		if user is None:
			return
		obs_metrics.socket_disconnected(self.namespace)
		offline = container.get_presence().unregister(sid)
		if offline is not None:
			obs_metrics.socket_event(self.namespace, "user_offline")
			await self.emit("user_offline", offline, skip_sid=sid)

	async def on_join(self, sid: str, payload: Any = None) -> dict:
		obs_metrics.socket_event(self.namespace, "join")
		user = self._sessions.get(sid)
		if user is None:
			return _error("unauthorized")
		requested = _field(payload, "userId")
		if requested is not None and requested != user.id:
			LOGGER.warning("socket join rejected", extra={"sid": sid, "user_id": user.id})
			return _error("forbidden")
		await container.get_broker().add_to_room(sid, user_room(user.id))
		if container.get_presence().register(user.id, sid):
			obs_metrics.socket_event(self.namespace, "user_online")
			await self.emit("user_online", user.id, skip_sid=sid)
		return _ok()

	async def on_join_conversation(self, sid: str, payload: Any = None) -> dict:
		obs_metrics.socket_event(self.namespace, "join_conversation")
		user = self._sessions.get(sid)
		conversation_id = _field(payload, "conversationId")
		if user is None or conversation_id is None:
			return _error("validation_error")
		if not await container.get_chat_service().is_participant(conversation_id, user.id):
			return _error("forbidden")
		await container.get_broker().add_to_room(sid, conversation_room(conversation_id))
		self._conversations[sid].add(conversation_id)
		return _ok()

	async def on_leave_conversation(self, sid: str, payload: Any = None) -> dict:
		obs_metrics.socket_event(self.namespace, "leave_conversation")
		conversation_id = _field(payload, "conversationId")
		if conversation_id is not None:
			await container.get_broker().remove_from_room(sid, conversation_room(conversation_id))
			self._conversations.get(sid, set()).discard(conversation_id)
		return _ok()

	async def on_typing_start(self, sid: str, payload: Any = None) -> None:
		await self._relay_typing(sid, "typing_start", payload)

	async def on_typing_stop(self, sid: str, payload: Any = None) -> None:
		await self._relay_typing(sid, "typing_stop", payload)

	async def _relay_typing(self, sid: str, event: str, payload: Any) -> None:
		obs_metrics.socket_event(self.namespace, event)
		user = self._sessions.get(sid)
		if user is None:
			return
		conversation_id = _field(payload, "conversationId")
		body = {"userId": user.id, "conversationId": conversation_id}
		broker = container.get_broker()
		if conversation_id is not None and conversation_id in self._conversations.get(sid, set()):
			await broker.emit_to_room(conversation_room(conversation_id), _TYPING_EVENTS[event], body, skip_sid=sid)
			return
		recipient_id = _field(payload, "recipientId")
		if recipient_id is None or recipient_id == user.id:
			return
		if not await self._may_reach(user.id, recipient_id):
			LOGGER.debug("typing relay dropped", extra={"sid": sid, "event": event})
			return
		await broker.emit_to_room(user_room(recipient_id), _TYPING_EVENTS[event], body)

	async def _may_reach(self, user_id: str, recipient_id: str) -> bool:
		"""Approved connection and no block in either direction."""
		if await container.get_identity_service().is_blocked(user_id, recipient_id):
			return False
		try:
			await container.get_chat_service().ensure_connected(user_id, recipient_id)
		except NotConnected:
			return False
		return True

	async def on_read_messages(self, sid: str, payload: Any = None) -> dict:
		obs_metrics.socket_event(self.namespace, "read_messages")
		user = self._sessions.get(sid)
		conversation_id = _field(payload, "conversationId")
		if user is None or conversation_id is None:
			return _error("validation_error")
		tokens = obs_logging.bind_context(user_id=user.id, sid=sid)
		try:
			updated = await container.get_chat_service().mark_read(conversation_id, user.id)
		except CircleError as exc:
			return _error(exc.kind)
		finally:
			obs_logging.reset_context(tokens)
		return {"ok": True, "updated": updated}
