"""Conversation and message storage (protocol plus in-memory implementation)."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple
from uuid import uuid4

from mycircle.domain.chat.models import Conversation, ConversationKey, Message, MessageStatus


class ChatRepository(Protocol):
	async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
		...

	async def find_conversation(self, user_one: str, user_two: str) -> Optional[Conversation]:
		...

	async def get_or_create(self, user_one: str, user_two: str) -> Conversation:
		"""Return the pair's conversation, creating it once; order of the ids is irrelevant."""
		...

	async def list_conversations(self, user_id: str) -> Sequence[Conversation]:
		...

	async def delete_conversation(self, conversation_id: str) -> None:
		...

	async def insert_message(self, conversation_id: str, sender_id: str, body: str) -> Message:
		"""Persist a message read by its sender and bump the conversation's last message."""
		...

	async def get_messages(self, message_ids: Iterable[str]) -> Mapping[str, Message]:
		...

	async def list_messages(self, conversation_id: str) -> Sequence[Message]:
		...

	async def mark_read(self, conversation_id: str, reader_id: str) -> int:
		...

	async def unread_total(self, user_id: str) -> int:
		...

	async def unread_by_conversation(self, user_id: str) -> Mapping[str, int]:
		...


class InMemoryChatRepository(ChatRepository):
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self._conversations: Dict[str, Conversation] = {}
		self._by_pair: Dict[Tuple[str, str], str] = {}
		self._messages: Dict[str, List[Message]] = {}

	async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
		item = self._conversations.get(conversation_id)
		return replace(item) if item else None

	async def find_conversation(self, user_one: str, user_two: str) -> Optional[Conversation]:
		conversation_id = self._by_pair.get(ConversationKey.from_participants(user_one, user_two).participants())
		return await self.get_conversation(conversation_id) if conversation_id else None

	async def get_or_create(self, user_one: str, user_two: str) -> Conversation:
		key = ConversationKey.from_participants(user_one, user_two)
		async with self._lock:
			existing = self._by_pair.get(key.participants())
			if existing is not None:
				return replace(self._conversations[existing])
			now = datetime.now(timezone.utc)
			conversation = Conversation(
				id=str(uuid4()),
				user_a=key.user_a,
				user_b=key.user_b,
				created_at=now,
				updated_at=now,
			)
			self._conversations[conversation.id] = conversation
			self._by_pair[key.participants()] = conversation.id
			self._messages[conversation.id] = []
			return replace(conversation)

	async def list_conversations(self, user_id: str) -> Sequence[Conversation]:
		rows = [replace(item) for item in self._conversations.values() if item.is_participant(user_id)]
		rows.sort(key=lambda item: item.updated_at, reverse=True)
		return rows

	async def delete_conversation(self, conversation_id: str) -> None:
		async with self._lock:
			conversation = self._conversations.pop(conversation_id, None)
			if conversation is not None:
				self._by_pair.pop(conversation.key.participants(), None)
			self._messages.pop(conversation_id, None)

	async def insert_message(self, conversation_id: str, sender_id: str, body: str) -> Message:
		async with self._lock:
			conversation = self._conversations[conversation_id]
			message = Message(
				id=str(uuid4()),
				conversation_id=conversation_id,
				sender_id=sender_id,
				body=body,
				created_at=datetime.now(timezone.utc),
				read_by=[sender_id],
			)
			self._messages.setdefault(conversation_id, []).append(message)
			conversation.last_message_id = message.id
			conversation.updated_at = message.created_at
			return replace(message, read_by=list(message.read_by))

	async def get_messages(self, message_ids: Iterable[str]) -> Mapping[str, Message]:
		wanted = set(message_ids)
		return {
			message.id: replace(message, read_by=list(message.read_by))
			for messages in self._messages.values()
			for message in messages
			if message.id in wanted
		}

	async def list_messages(self, conversation_id: str) -> Sequence[Message]:
		return [replace(message, read_by=list(message.read_by)) for message in self._messages.get(conversation_id, [])]

	async def mark_read(self, conversation_id: str, reader_id: str) -> int:
		updated = 0
		async with self._lock:
			for message in self._messages.get(conversation_id, []):
				if message.is_unread_for(reader_id):
					message.read_by.append(reader_id)
					message.status = MessageStatus.READ
					updated += 1
		return updated

	async def unread_total(self, user_id: str) -> int:
		return sum((await self.unread_by_conversation(user_id)).values())

	async def unread_by_conversation(self, user_id: str) -> Mapping[str, int]:
		counts: Dict[str, int] = {}
		for conversation in self._conversations.values():
			if not conversation.is_participant(user_id):
				continue
			unread = sum(1 for message in self._messages.get(conversation.id, []) if message.is_unread_for(user_id))
			if unread:
				counts[conversation.id] = unread
		return counts
