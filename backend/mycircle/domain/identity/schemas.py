"""Pydantic schemas for user summaries."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from mycircle.domain.identity.models import UserSummary


class UserSummaryOut(BaseModel):
	id: str
	display_name: str
	avatar_url: Optional[str] = None
	is_online: bool = False

	@classmethod
	def from_summary(cls, summary: UserSummary) -> "UserSummaryOut":
		return cls(
			id=summary.id,
			display_name=summary.display_name,
			avatar_url=summary.avatar_url,
			is_online=summary.is_online,
		)


class BlockedUsersResponse(BaseModel):
	items: list[UserSummaryOut]
