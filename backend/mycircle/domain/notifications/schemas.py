"""Pydantic schemas for notification endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel

from mycircle.domain.identity.schemas import UserSummaryOut


class RelatedOut(BaseModel):
	kind: Literal["post", "request", "conversation", "user"]
	id: str


class NotificationOut(BaseModel):
	id: str
	recipient_id: str
	sender: Optional[UserSummaryOut] = None
	type: str
	title: str
	message: str
	link: Optional[str] = None
	related: Optional[RelatedOut] = None
	read: bool
	created_at: datetime


class NotificationListResponse(BaseModel):
	items: List[NotificationOut]


class UnreadCountResponse(BaseModel):
	count: int


class MarkAllReadResponse(BaseModel):
	updated: int
