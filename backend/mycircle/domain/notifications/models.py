"""Domain models for user notifications."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from mycircle.domain.identity.models import UserSummary


class NotificationType(str, Enum):
	REQUEST = "request"
	APPROVAL = "approval"
	INFO = "info"
	MESSAGE = "message"
	LIKE = "like"
	COMMENT = "comment"
	SYSTEM = "system"


class RelatedKind(str, Enum):
	POST = "post"
	REQUEST = "request"
	CONVERSATION = "conversation"
	USER = "user"


@dataclass(slots=True, frozen=True)
class RelatedRef:
	"""Tagged reference to the entity a notification points at."""

	kind: RelatedKind
	id: str

	@classmethod
	def post(cls, post_id: str) -> "RelatedRef":
		return cls(RelatedKind.POST, post_id)

	@classmethod
	def request(cls, request_id: str) -> "RelatedRef":
		return cls(RelatedKind.REQUEST, request_id)

	@classmethod
	def conversation(cls, conversation_id: str) -> "RelatedRef":
		return cls(RelatedKind.CONVERSATION, conversation_id)

	@classmethod
	def parse(cls, kind: Optional[str], related_id: Optional[str]) -> Optional["RelatedRef"]:
		if not kind or not related_id:
			return None
		return cls(RelatedKind(kind), str(related_id))

	def to_dict(self) -> dict:
		return {"kind": self.kind.value, "id": self.id}


@dataclass(slots=True)
class NotificationDraft:
	recipient_id: str
	type: NotificationType
	title: str
	message: str
	sender_id: Optional[str] = None
	link: Optional[str] = None
	related: Optional[RelatedRef] = None


@dataclass(slots=True)
class Notification:
	id: str
	recipient_id: str
	type: NotificationType
	title: str
	message: str
	created_at: datetime
	sender_id: Optional[str] = None
	link: Optional[str] = None
	related: Optional[RelatedRef] = None
	read: bool = False

	def to_wire(self, sender: Optional[UserSummary] = None) -> dict:
		"""Payload of the `new_notification` realtime event."""
		return {
			"id": self.id,
			"recipientId": self.recipient_id,
			"senderId": self.sender_id,
			"sender": (
				{"id": sender.id, "displayName": sender.display_name, "avatarUrl": sender.avatar_url}
				if sender is not None
				else None
			),
			"type": self.type.value,
			"title": self.title,
			"message": self.message,
			"link": self.link,
			"related": self.related.to_dict() if self.related else None,
			"read": self.read,
			"createdAt": self.created_at.isoformat(),
		}
