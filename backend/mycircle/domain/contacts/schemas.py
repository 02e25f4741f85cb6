"""Pydantic schemas for contact request endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from mycircle.domain.identity.schemas import UserSummaryOut


class ContactRequestCreate(BaseModel):
	post_id: Optional[str] = Field(default=None, alias="postId")
	recipient_id: Optional[str] = Field(default=None, alias="recipientId")
	message: Optional[str] = None

	model_config = {"populate_by_name": True}


class ContactStatusUpdate(BaseModel):
	status: str


class PostSummaryOut(BaseModel):
	id: str
	title: str
	type: str
	images: List[str] = Field(default_factory=list)
	contact_phone: Optional[str] = None
	contact_whatsapp: Optional[str] = None


class ContactRequestOut(BaseModel):
	id: str
	post_id: str
	requester_id: str
	recipient_id: str
	status: str
	message: Optional[str] = None
	created_at: datetime
	expires_at: datetime
	decided_at: Optional[datetime] = None
	post: Optional[PostSummaryOut] = None
	requester: Optional[UserSummaryOut] = None
	recipient: Optional[UserSummaryOut] = None


class ContactRequestListResponse(BaseModel):
	items: List[ContactRequestOut]


class StatusUpdateResponse(BaseModel):
	request: ContactRequestOut
	conversation_id: Optional[str] = None
