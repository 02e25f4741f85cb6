"""Connection-gated message pipeline and conversation queries."""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from mycircle.domain.chat.models import Conversation, Message
from mycircle.domain.chat.repository import ChatRepository
from mycircle.domain.chat.safety import SafetyChecker
from mycircle.domain.chat.schemas import (
	ConversationListResponse,
	ConversationResponse,
	MessageListResponse,
	MessageResponse,
)
from mycircle.domain.common.exceptions import (
	Blocked,
	CircleError,
	ContentViolation,
	NotConnected,
	NotFound,
	Unauthorized,
	ValidationError,
)
from mycircle.domain.contacts.repository import ContactRequestRepository
from mycircle.domain.identity.models import UserSummary
from mycircle.domain.identity.schemas import UserSummaryOut
from mycircle.domain.identity.service import IdentityService
from mycircle.obs import metrics as obs_metrics
from mycircle.realtime.rooms import RoomBroker, user_room

LOGGER = logging.getLogger(__name__)


def to_message_response(message: Message, sender: Optional[UserSummary] = None) -> MessageResponse:
	return MessageResponse(
		id=message.id,
		conversation_id=message.conversation_id,
		sender_id=message.sender_id,
		sender=UserSummaryOut.from_summary(sender) if sender is not None else None,
		text=message.body,
		status=message.status.value,
		read_by=list(message.read_by),
		created_at=message.created_at,
	)


class ChatService:
	def __init__(
		self,
		chats: ChatRepository,
		requests: ContactRequestRepository,
		identity: IdentityService,
		safety: SafetyChecker,
		broker: RoomBroker,
		*,
		max_length: int = 4000,
	) -> None:
		self._chats = chats
		self._requests = requests
		self._identity = identity
		self._safety = safety
		self._broker = broker
		self._max_length = max_length

	async def ensure_connected(self, user_id: str, other_id: str) -> None:
		"""Raise NotConnected unless an approved request links the pair in either direction."""
		if not await self._requests.has_approved_between(user_id, other_id):
			raise NotConnected()

	async def send_message(self, sender_id: str, recipient_id: str, text: str) -> MessageResponse:
		try:
			await self._gate(sender_id, recipient_id, text)
		except CircleError as exc:
			obs_metrics.inc_chat_send_reject(exc.kind)
			raise
		conversation = await self._chats.get_or_create(sender_id, recipient_id)
		message = await self._chats.insert_message(conversation.id, sender_id, text)
		obs_metrics.inc_chat_send()
		sender = await self._identity.summary(sender_id)
		await self._broker.emit_to_room(
			user_room(recipient_id),
			"receive_message",
			{"conversationId": conversation.id, "message": message.to_wire(sender)},
		)
		LOGGER.info("chat message sent", extra={"conversation_id": conversation.id, "message_id": message.id})
		return to_message_response(message, sender)

	async def _gate(self, sender_id: str, recipient_id: str, text: str) -> None:
		"""Checks in order; nothing is persisted or emitted when any fails."""
		if not recipient_id:
			raise ValidationError("Recipient is required")
		if sender_id == recipient_id:
			raise ValidationError("You cannot message yourself")
		if not text or not text.strip():
			raise ValidationError("Message text is required")
		if len(text) > self._max_length:
			raise ValidationError(f"Message must be at most {self._max_length} characters")
		await self.ensure_connected(sender_id, recipient_id)
		verdict = await self._safety.check(text)
		if not verdict.safe:
			raise ContentViolation(verdict.reason)
		if await self._identity.is_blocked(sender_id, recipient_id):
			raise Blocked("You cannot message this user")

	async def mark_read(self, conversation_id: str, reader_id: str) -> int:
		conversation = await self._participant_conversation(conversation_id, reader_id)
		updated = await self._chats.mark_read(conversation_id, reader_id)
		obs_metrics.inc_chat_read(updated)
		await self._broker.emit_to_room(
			user_room(conversation.other(reader_id)),
			"messages_read",
			{"conversationId": conversation_id, "readerId": reader_id},
		)
		await self._broker.emit_to_room(user_room(reader_id), "unread_count_update", None)
		return updated

	async def unread_total(self, user_id: str) -> int:
		return await self._chats.unread_total(user_id)

	async def list_conversations(self, user_id: str) -> ConversationListResponse:
		conversations = await self._chats.list_conversations(user_id)
		last_ids = [item.last_message_id for item in conversations if item.last_message_id]
		last_messages = await self._chats.get_messages(last_ids)
		unread = await self._chats.unread_by_conversation(user_id)
		users = await self._identity.summaries(uid for item in conversations for uid in item.participants())
		return ConversationListResponse(
			items=[self._to_response(item, users, last_messages, unread.get(item.id, 0)) for item in conversations]
		)

	async def list_messages(self, conversation_id: str, user_id: str) -> MessageListResponse:
		await self._participant_conversation(conversation_id, user_id)
		messages = await self._chats.list_messages(conversation_id)
		users = await self._identity.summaries({message.sender_id for message in messages})
		return MessageListResponse(items=[to_message_response(message, users[message.sender_id]) for message in messages])

	async def peek_conversation(self, user_id: str, other_id: str) -> ConversationResponse:
		"""Existing conversation with `other_id`, or an unsaved placeholder."""
		conversation = await self._chats.find_conversation(user_id, other_id)
		if conversation is None:
			users = await self._identity.summaries([user_id, other_id])
			return ConversationResponse(
				id=None,
				participants=[UserSummaryOut.from_summary(users[user_id]), UserSummaryOut.from_summary(users[other_id])],
				last_message=None,
				unread_count=0,
			)
		return await self._single_response(conversation, user_id)

	async def init_chat(self, user_id: str, other_id: str) -> ConversationResponse:
		if user_id == other_id:
			raise ValidationError("You cannot chat with yourself")
		await self.ensure_connected(user_id, other_id)
		conversation = await self._chats.get_or_create(user_id, other_id)
		return await self._single_response(conversation, user_id)

	async def delete_conversation(self, conversation_id: str, user_id: str) -> None:
		await self._participant_conversation(conversation_id, user_id)
		await self._chats.delete_conversation(conversation_id)
		LOGGER.info("conversation deleted", extra={"conversation_id": conversation_id})

	async def is_participant(self, conversation_id: str, user_id: str) -> bool:
		conversation = await self._chats.get_conversation(conversation_id)
		return conversation is not None and conversation.is_participant(user_id)

	async def _participant_conversation(self, conversation_id: str, user_id: str) -> Conversation:
		conversation = await self._chats.get_conversation(conversation_id)
		if conversation is None:
			raise NotFound("Conversation not found")
		if not conversation.is_participant(user_id):
			raise Unauthorized("Not authorized")
		return conversation

	async def _single_response(self, conversation: Conversation, user_id: str) -> ConversationResponse:
		last = await self._chats.get_messages([conversation.last_message_id] if conversation.last_message_id else [])
		unread = await self._chats.unread_by_conversation(user_id)
		users = await self._identity.summaries(conversation.participants())
		return self._to_response(conversation, users, last, unread.get(conversation.id, 0))

	@staticmethod
	def _to_response(
		conversation: Conversation,
		users: Mapping[str, UserSummary],
		last_messages: Mapping[str, Message],
		unread_count: int,
	) -> ConversationResponse:
		last = last_messages.get(conversation.last_message_id or "")
		return ConversationResponse(
			id=conversation.id,
			participants=[UserSummaryOut.from_summary(users[uid]) for uid in conversation.participants()],
			last_message=to_message_response(last, users.get(last.sender_id)) if last else None,
			unread_count=unread_count,
			updated_at=conversation.updated_at,
		)
