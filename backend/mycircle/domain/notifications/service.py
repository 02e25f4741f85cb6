"""Notification persistence and realtime fan-out."""

from __future__ import annotations

import logging
from typing import Optional

from mycircle.domain.common.exceptions import NotFound, Unauthorized
from mycircle.domain.identity.schemas import UserSummaryOut
from mycircle.domain.identity.service import IdentityService
from mycircle.domain.notifications import schemas
from mycircle.domain.notifications.models import Notification, NotificationDraft
from mycircle.domain.notifications.repository import NotificationRepository
from mycircle.obs import metrics as obs_metrics
from mycircle.realtime.rooms import RoomBroker, user_room

LOGGER = logging.getLogger(__name__)


class NotificationService:
	"""Single choke point every producer uses to reach a user."""

	def __init__(
		self,
		repository: NotificationRepository,
		identity: IdentityService,
		broker: RoomBroker,
		*,
		list_limit: int = 50,
	) -> None:
		self._repo = repository
		self._identity = identity
		self._broker = broker
		self._list_limit = list_limit

	async def create(self, draft: NotificationDraft) -> Optional[Notification]:
		"""Persist and push a notification; self-notifications are skipped."""
		if draft.sender_id is not None and draft.sender_id == draft.recipient_id:
			return None
		notification = await self._repo.insert(draft)
		obs_metrics.inc_notification(notification.type.value)
		sender = await self._identity.summary(notification.sender_id) if notification.sender_id else None
		await self._broker.emit_to_room(
			user_room(notification.recipient_id),
			"new_notification",
			notification.to_wire(sender),
		)
		return notification

	async def notify(self, draft: NotificationDraft) -> Optional[Notification]:
		"""Best-effort `create`: failures are logged and counted, never raised."""
		try:
			return await self.create(draft)
		except Exception:
			obs_metrics.inc_notification_failure("create")
			LOGGER.warning(
				"notification dropped",
				extra={"recipient_id": draft.recipient_id, "type": draft.type.value},
				exc_info=True,
			)
			return None

	async def list_for(self, user_id: str) -> schemas.NotificationListResponse:
		items = await self._repo.list_for(user_id, limit=self._list_limit)
		senders = await self._identity.summaries(item.sender_id for item in items if item.sender_id)
		return schemas.NotificationListResponse(
			items=[self.to_response(item, senders.get(item.sender_id or "")) for item in items]
		)

	async def unread_count(self, user_id: str) -> int:
		return await self._repo.unread_count(user_id)

	async def mark_read(self, notification_id: str, user_id: str) -> None:
		await self._owned(notification_id, user_id)
		await self._repo.mark_read(notification_id)

	async def mark_all_read(self, user_id: str) -> int:
		return await self._repo.mark_all_read(user_id)

	async def delete(self, notification_id: str, user_id: str) -> None:
		await self._owned(notification_id, user_id)
		await self._repo.delete(notification_id)

	async def _owned(self, notification_id: str, user_id: str) -> Notification:
		notification = await self._repo.get(notification_id)
		if notification is None:
			raise NotFound("Notification not found")
		if notification.recipient_id != user_id:
			raise Unauthorized("Not authorized")
		return notification

	@staticmethod
	def to_response(notification: Notification, sender=None) -> schemas.NotificationOut:
		return schemas.NotificationOut(
			id=notification.id,
			recipient_id=notification.recipient_id,
			sender=UserSummaryOut.from_summary(sender) if sender is not None else None,
			type=notification.type.value,
			title=notification.title,
			message=notification.message,
			link=notification.link,
			related=notification.related.to_dict() if notification.related else None,
			read=notification.read,
			created_at=notification.created_at,
		)
