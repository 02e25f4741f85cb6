"""Notification repository protocol and in-memory implementation."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Sequence
from uuid import uuid4

from mycircle.domain.notifications.models import Notification, NotificationDraft


class NotificationRepository(Protocol):
	async def insert(self, draft: NotificationDraft) -> Notification:
		...

	async def get(self, notification_id: str) -> Optional[Notification]:
		...

	async def list_for(self, recipient_id: str, *, limit: int) -> Sequence[Notification]:
		...

	async def unread_count(self, recipient_id: str) -> int:
		...

	async def mark_read(self, notification_id: str) -> None:
		...

	async def mark_all_read(self, recipient_id: str) -> int:
		...

	async def delete(self, notification_id: str) -> None:
		...


class InMemoryNotificationRepository(NotificationRepository):
	def __init__(self) -> None:
		self._items: Dict[str, Notification] = {}
		self._lock = asyncio.Lock()

	async def insert(self, draft: NotificationDraft) -> Notification:
		notification = Notification(
			id=str(uuid4()),
			recipient_id=draft.recipient_id,
			sender_id=draft.sender_id,
			type=draft.type,
			title=draft.title,
			message=draft.message,
			link=draft.link,
			related=draft.related,
			created_at=datetime.now(timezone.utc),
		)
		async with self._lock:
			self._items[notification.id] = notification
		return notification

	async def get(self, notification_id: str) -> Optional[Notification]:
		return self._items.get(notification_id)

	async def list_for(self, recipient_id: str, *, limit: int) -> Sequence[Notification]:
		# reversed insertion order breaks created_at ties newest-first
		rows: List[Notification] = [item for item in reversed(self._items.values()) if item.recipient_id == recipient_id]
		rows.sort(key=lambda item: item.created_at, reverse=True)
		return rows[:limit]

	async def unread_count(self, recipient_id: str) -> int:
		return sum(1 for item in self._items.values() if item.recipient_id == recipient_id and not item.read)

	async def mark_read(self, notification_id: str) -> None:
		item = self._items.get(notification_id)
		if item is not None:
			item.read = True

	async def mark_all_read(self, recipient_id: str) -> int:
		updated = 0
		async with self._lock:
			for item in self._items.values():
				if item.recipient_id == recipient_id and not item.read:
					item.read = True
					updated += 1
		return updated

	async def delete(self, notification_id: str) -> None:
		async with self._lock:
			self._items.pop(notification_id, None)
