"""Domain models for user summaries and block lists."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class UserSummary:
	"""Public projection of a user shown next to requests, messages and notifications."""

	id: str
	display_name: str
	avatar_url: Optional[str] = None
	is_online: bool = False

	def to_dict(self) -> dict:
		return {
			"id": self.id,
			"display_name": self.display_name,
			"avatar_url": self.avatar_url,
			"is_online": self.is_online,
		}


@dataclass(slots=True)
class Block:
	blocker_id: str
	blocked_id: str
	created_at: datetime


def unknown_user(user_id: str) -> UserSummary:
	"""Placeholder for users that were deleted after the referencing row was written."""
	return UserSummary(id=user_id, display_name="Unknown user")
