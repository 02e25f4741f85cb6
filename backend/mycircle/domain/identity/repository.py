"""User and block repositories (protocols plus in-memory implementations)."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Sequence, Tuple

from mycircle.domain.identity.models import Block, UserSummary


class UserRepository(Protocol):
	async def get(self, user_id: str) -> Optional[UserSummary]:
		...

	async def get_many(self, user_ids: Iterable[str]) -> Mapping[str, UserSummary]:
		...


class BlockRepository(Protocol):
	async def block(self, blocker_id: str, blocked_id: str) -> Block:
		...

	async def unblock(self, blocker_id: str, blocked_id: str) -> bool:
		...

	async def is_blocked_either_way(self, user_a: str, user_b: str) -> bool:
		...

	async def list_blocked(self, blocker_id: str) -> Sequence[Block]:
		...


class InMemoryUserRepository(UserRepository):
	def __init__(self, users: Iterable[UserSummary] = ()) -> None:
		self._users: Dict[str, UserSummary] = {user.id: user for user in users}

	def add(self, user: UserSummary) -> UserSummary:
		self._users[user.id] = user
		return user

	def remove(self, user_id: str) -> None:
		self._users.pop(user_id, None)

	async def get(self, user_id: str) -> Optional[UserSummary]:
		return self._users.get(user_id)

	async def get_many(self, user_ids: Iterable[str]) -> Mapping[str, UserSummary]:
		return {uid: self._users[uid] for uid in set(user_ids) if uid in self._users}


class InMemoryBlockRepository(BlockRepository):
	def __init__(self) -> None:
		self._blocks: Dict[Tuple[str, str], Block] = {}
		self._lock = asyncio.Lock()

	async def block(self, blocker_id: str, blocked_id: str) -> Block:
		async with self._lock:
			key = (blocker_id, blocked_id)
			existing = self._blocks.get(key)
			if existing is not None:
				return existing
			block = Block(blocker_id=blocker_id, blocked_id=blocked_id, created_at=datetime.now(timezone.utc))
			self._blocks[key] = block
			return block

	async def unblock(self, blocker_id: str, blocked_id: str) -> bool:
		async with self._lock:
			return self._blocks.pop((blocker_id, blocked_id), None) is not None

	async def is_blocked_either_way(self, user_a: str, user_b: str) -> bool:
		return (user_a, user_b) in self._blocks or (user_b, user_a) in self._blocks

	async def list_blocked(self, blocker_id: str) -> Sequence[Block]:
		rows: List[Block] = [block for (blocker, _), block in self._blocks.items() if blocker == blocker_id]
		rows.sort(key=lambda block: block.created_at, reverse=True)
		return rows
