"""Room naming and the broker that routes realtime events to rooms."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import socketio

from mycircle.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

NAMESPACE = "/"


def user_room(user_id: str) -> str:
	return f"user:{user_id}"


def conversation_room(conversation_id: str) -> str:
	return f"conversation:{conversation_id}"


class RoomBroker(Protocol):
	async def add_to_room(self, sid: str, room: str) -> None:
		...

	async def remove_from_room(self, sid: str, room: str) -> None:
		...

	async def emit_to_room(self, room: str, event: str, payload: Any, *, skip_sid: Optional[str] = None) -> None:
		...


class SocketIORoomBroker(RoomBroker):
	"""RoomBroker over a python-socketio AsyncServer.

	Emits before `bind` are dropped; emit failures are logged and never raised
	so a realtime outage cannot fail the REST call that produced the event.
	"""

	def __init__(self, server: Optional[socketio.AsyncServer] = None, *, namespace: str = NAMESPACE) -> None:
		self._server = server
		self._namespace = namespace

	def bind(self, server: socketio.AsyncServer) -> None:
		self._server = server

	async def add_to_room(self, sid: str, room: str) -> None:
		if self._server is None:
			return
		await self._server.enter_room(sid, room, namespace=self._namespace)

	async def remove_from_room(self, sid: str, room: str) -> None:
		if self._server is None:
			return
		await self._server.leave_room(sid, room, namespace=self._namespace)

	async def emit_to_room(self, room: str, event: str, payload: Any, *, skip_sid: Optional[str] = None) -> None:
		if self._server is None:
			return
		obs_metrics.socket_event(self._namespace, event)
		try:
			await self._server.emit(event, payload, room=room, skip_sid=skip_sid, namespace=self._namespace)
		except Exception:
			obs_metrics.socket_emit_failure(event)
			LOGGER.warning("socket emit failed", extra={"event": event, "room": room}, exc_info=True)


def build_server(*, cors_allowed_origins, redis_backplane: Optional[str] = None) -> socketio.AsyncServer:
	"""Create the AsyncServer, fanning out through Redis when a backplane URL is set."""
	client_manager = socketio.AsyncRedisManager(redis_backplane) if redis_backplane else None
	return socketio.AsyncServer(
		async_mode="asgi",
		cors_allowed_origins=cors_allowed_origins,
		client_manager=client_manager,
	)
