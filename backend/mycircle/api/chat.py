"""FastAPI endpoints for 1:1 conversations."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from mycircle import container
from mycircle.domain.chat.schemas import (
	ConversationListResponse,
	ConversationResponse,
	MarkReadResponse,
	MessageListResponse,
	MessageResponse,
	SendMessageRequest,
	UnreadCountResponse,
)
from mycircle.domain.chat.service import ChatService
from mycircle.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/chat", tags=["chat"])


def get_service() -> ChatService:
	return container.get_chat_service()


@router.get("/conversations", response_model=ConversationListResponse)
async def list_conversations_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ChatService = Depends(get_service),
) -> ConversationListResponse:
	return await service.list_conversations(auth_user.id)


@router.get("/conversation/{user_id}", response_model=ConversationResponse)
async def get_conversation_endpoint(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ChatService = Depends(get_service),
) -> ConversationResponse:
	return await service.peek_conversation(auth_user.id, user_id)


@router.post("/init/{user_id}", response_model=ConversationResponse)
async def init_chat_endpoint(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ChatService = Depends(get_service),
) -> ConversationResponse:
	return await service.init_chat(auth_user.id, user_id)


@router.delete("/conversation/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation_endpoint(
	conversation_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ChatService = Depends(get_service),
) -> Response:
	await service.delete_conversation(conversation_id, auth_user.id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/messages/{conversation_id}", response_model=MessageListResponse)
async def list_messages_endpoint(
	conversation_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ChatService = Depends(get_service),
) -> MessageListResponse:
	return await service.list_messages(conversation_id, auth_user.id)


@router.post("/message", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def send_message_endpoint(
	payload: SendMessageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ChatService = Depends(get_service),
) -> MessageResponse:
	return await service.send_message(auth_user.id, payload.recipient_id, payload.text)


@router.put("/read/{conversation_id}", response_model=MarkReadResponse)
async def mark_read_endpoint(
	conversation_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ChatService = Depends(get_service),
) -> MarkReadResponse:
	updated = await service.mark_read(conversation_id, auth_user.id)
	return MarkReadResponse(updated=updated)


@router.get("/unread/count", response_model=UnreadCountResponse)
async def unread_count_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ChatService = Depends(get_service),
) -> UnreadCountResponse:
	return UnreadCountResponse(count=await service.unread_total(auth_user.id))
