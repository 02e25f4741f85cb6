"""Domain models for post-scoped contact requests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

MESSAGE_MAX_LENGTH = 200


class ContactStatus(str, Enum):
	PENDING = "pending"
	APPROVED = "approved"
	REJECTED = "rejected"
	EXPIRED = "expired"


DECISIONS = frozenset({ContactStatus.APPROVED, ContactStatus.REJECTED})
# Closed states that impose a cooldown before the same requester may ask again.
COOLDOWN_STATES = frozenset({ContactStatus.REJECTED, ContactStatus.EXPIRED})
# States that block a new request for the same (post, requester) outright.
OPEN_STATES = frozenset({ContactStatus.PENDING, ContactStatus.APPROVED})


@dataclass(slots=True)
class ContactRequest:
	id: str
	post_id: str
	requester_id: str
	recipient_id: str
	status: ContactStatus
	created_at: datetime
	expires_at: datetime
	message: Optional[str] = None
	decided_at: Optional[datetime] = None

	def is_party(self, user_id: str) -> bool:
		return user_id in (self.requester_id, self.recipient_id)

	def is_overdue(self, now: datetime) -> bool:
		return self.status is ContactStatus.PENDING and self.expires_at <= now

	def to_audit(self) -> dict[str, str]:
		return {
			"request_id": self.id,
			"post_id": self.post_id,
			"requester_id": self.requester_id,
			"recipient_id": self.recipient_id,
			"status": self.status.value,
		}
