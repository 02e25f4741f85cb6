"""Contact request repository protocol and in-memory implementation."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

from mycircle.domain.common.exceptions import DuplicateRequest
from mycircle.domain.contacts.models import COOLDOWN_STATES, ContactRequest, ContactStatus


class ContactRequestRepository(Protocol):
	async def get(self, request_id: str) -> Optional[ContactRequest]:
		...

	async def find(self, post_id: str, requester_id: str) -> Optional[ContactRequest]:
		...

	async def insert(self, request: ContactRequest) -> ContactRequest:
		"""Insert a new request; raises DuplicateRequest when (post, requester) already exists."""
		...

	async def reopen(
		self,
		request_id: str,
		*,
		message: Optional[str],
		created_at: datetime,
		expires_at: datetime,
	) -> Optional[ContactRequest]:
		"""Move a rejected/expired request back to pending; None if it is no longer closed."""
		...

	async def transition(
		self,
		request_id: str,
		*,
		status: ContactStatus,
		decided_at: datetime,
	) -> Optional[ContactRequest]:
		"""Apply a decision to a pending request; None if it is no longer pending."""
		...

	async def delete(self, request_id: str) -> None:
		...

	async def list_received(self, recipient_id: str) -> Sequence[ContactRequest]:
		...

	async def list_sent(self, requester_id: str) -> Sequence[ContactRequest]:
		...

	async def has_approved_between(self, user_a: str, user_b: str) -> bool:
		...

	async def expire_pending(self, now: datetime) -> Sequence[ContactRequest]:
		"""Flip overdue pending requests to expired and return them."""
		...


class InMemoryContactRequestRepository(ContactRequestRepository):
	"""Dict-backed store enforcing the (post, requester) uniqueness under a lock."""

	def __init__(self) -> None:
		self._items: Dict[str, ContactRequest] = {}
		self._by_pair: Dict[Tuple[str, str], str] = {}
		self._lock = asyncio.Lock()

	async def get(self, request_id: str) -> Optional[ContactRequest]:
		item = self._items.get(request_id)
		return replace(item) if item else None

	async def find(self, post_id: str, requester_id: str) -> Optional[ContactRequest]:
		request_id = self._by_pair.get((post_id, requester_id))
		return await self.get(request_id) if request_id else None

	async def insert(self, request: ContactRequest) -> ContactRequest:
		async with self._lock:
			key = (request.post_id, request.requester_id)
			if key in self._by_pair:
				raise DuplicateRequest("Contact request already sent for this post")
			self._items[request.id] = replace(request)
			self._by_pair[key] = request.id
		return replace(request)

	async def reopen(
		self,
		request_id: str,
		*,
		message: Optional[str],
		created_at: datetime,
		expires_at: datetime,
	) -> Optional[ContactRequest]:
		async with self._lock:
			item = self._items.get(request_id)
			if item is None or item.status not in COOLDOWN_STATES:
				return None
			item.status = ContactStatus.PENDING
			item.message = message
			item.created_at = created_at
			item.expires_at = expires_at
			item.decided_at = None
			return replace(item)

	async def transition(
		self,
		request_id: str,
		*,
		status: ContactStatus,
		decided_at: datetime,
	) -> Optional[ContactRequest]:
		async with self._lock:
			item = self._items.get(request_id)
			if item is None or item.status is not ContactStatus.PENDING:
				return None
			item.status = status
			item.decided_at = decided_at
			return replace(item)

	async def delete(self, request_id: str) -> None:
		async with self._lock:
			item = self._items.pop(request_id, None)
			if item is not None:
				self._by_pair.pop((item.post_id, item.requester_id), None)

	async def list_received(self, recipient_id: str) -> Sequence[ContactRequest]:
		return self._sorted(item for item in self._items.values() if item.recipient_id == recipient_id)

	async def list_sent(self, requester_id: str) -> Sequence[ContactRequest]:
		return self._sorted(item for item in self._items.values() if item.requester_id == requester_id)

	async def has_approved_between(self, user_a: str, user_b: str) -> bool:
		pair = {user_a, user_b}
		return any(
			item.status is ContactStatus.APPROVED and {item.requester_id, item.recipient_id} == pair
			for item in self._items.values()
		)

	async def expire_pending(self, now: datetime) -> Sequence[ContactRequest]:
		expired: List[ContactRequest] = []
		async with self._lock:
			for item in self._items.values():
				if item.is_overdue(now):
					item.status = ContactStatus.EXPIRED
					item.decided_at = now
					expired.append(replace(item))
		return expired

	@staticmethod
	def _sorted(items) -> List[ContactRequest]:
		rows = [replace(item) for item in items]
		rows.sort(key=lambda item: item.created_at, reverse=True)
		return rows
