"""Domain models for 1:1 conversations and their messages."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from mycircle.domain.identity.models import UserSummary


@dataclass(slots=True)
class ConversationKey:
	"""Canonical representation of a 1:1 chat conversation."""

	user_a: str
	user_b: str

	@classmethod
	def from_participants(cls, user_one: str, user_two: str) -> "ConversationKey":
		ordered = tuple(sorted((str(user_one).lower(), str(user_two).lower())))
		return cls(user_a=ordered[0], user_b=ordered[1])

	def participants(self) -> Tuple[str, str]:
		return (self.user_a, self.user_b)


@dataclass(slots=True)
class Conversation:
	id: str
	user_a: str
	user_b: str
	created_at: datetime
	updated_at: datetime
	last_message_id: Optional[str] = None

	@property
	def key(self) -> ConversationKey:
		return ConversationKey(self.user_a, self.user_b)

	def participants(self) -> Tuple[str, str]:
		return (self.user_a, self.user_b)

	def is_participant(self, user_id: str) -> bool:
		return user_id in (self.user_a, self.user_b)

	def other(self, user_id: str) -> str:
		return self.user_b if user_id == self.user_a else self.user_a


class MessageStatus(str, Enum):
	SENT = "sent"
	READ = "read"


@dataclass(slots=True)
class Message:
	id: str
	conversation_id: str
	sender_id: str
	body: str
	created_at: datetime
	status: MessageStatus = MessageStatus.SENT
	read_by: List[str] = field(default_factory=list)

	def is_unread_for(self, user_id: str) -> bool:
		return self.sender_id != user_id and user_id not in self.read_by

	def to_wire(self, sender: UserSummary) -> dict:
		return {
			"id": self.id,
			"conversationId": self.conversation_id,
			"senderId": self.sender_id,
			"sender": {"id": sender.id, "displayName": sender.display_name, "avatarUrl": sender.avatar_url},
			"text": self.body,
			"status": self.status.value,
			"readBy": list(self.read_by),
			"createdAt": self.created_at.isoformat(),
		}
