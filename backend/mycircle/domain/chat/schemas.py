"""Pydantic schemas for chat endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from mycircle.domain.identity.schemas import UserSummaryOut


class SendMessageRequest(BaseModel):
	recipient_id: str = Field(alias="recipientId")
	text: str

	model_config = {"populate_by_name": True}


class MessageResponse(BaseModel):
	id: str
	conversation_id: str
	sender_id: str
	sender: Optional[UserSummaryOut] = None
	text: str
	status: str
	read_by: List[str]
	created_at: datetime


class MessageListResponse(BaseModel):
	items: List[MessageResponse]


class ConversationResponse(BaseModel):
	"""A conversation from one participant's point of view.

	`id` is null for a pair that has not exchanged messages yet.
	"""

	id: Optional[str] = None
	participants: List[UserSummaryOut]
	last_message: Optional[MessageResponse] = None
	unread_count: int = 0
	updated_at: Optional[datetime] = None


class ConversationListResponse(BaseModel):
	items: List[ConversationResponse]


class MarkReadResponse(BaseModel):
	updated: int


class UnreadCountResponse(BaseModel):
	count: int
