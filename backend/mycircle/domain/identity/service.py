"""User lookup, block list and presence helpers used by the messaging services."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from mycircle.domain.common.exceptions import NotFound, ValidationError
from mycircle.domain.identity.models import UserSummary, unknown_user
from mycircle.domain.identity.repository import BlockRepository, UserRepository
from mycircle.obs import metrics as obs_metrics
from mycircle.realtime.presence import PresenceRegistry

LOGGER = logging.getLogger(__name__)


class IdentityService:
	def __init__(self, users: UserRepository, blocks: BlockRepository, presence: PresenceRegistry) -> None:
		self._users = users
		self._blocks = blocks
		self._presence = presence

	@property
	def presence(self) -> PresenceRegistry:
		return self._presence

	async def summaries(self, user_ids: Iterable[str]) -> Dict[str, UserSummary]:
		"""Return summaries keyed by id with live online state; missing users get a placeholder."""
		ids = {str(uid) for uid in user_ids}
		found = await self._users.get_many(ids)
		result: Dict[str, UserSummary] = {}
		for uid in ids:
			base = found.get(uid) or unknown_user(uid)
			result[uid] = UserSummary(
				id=base.id,
				display_name=base.display_name,
				avatar_url=base.avatar_url,
				is_online=self._presence.is_online(uid),
			)
		return result

	async def summary(self, user_id: str) -> UserSummary:
		return (await self.summaries([user_id]))[user_id]

	async def ensure_exists(self, user_id: str) -> UserSummary:
		user = await self._users.get(user_id)
		if user is None:
			raise NotFound("User not found")
		return user

	async def is_blocked(self, user_a: str, user_b: str) -> bool:
		"""A block in either direction blocks both directions."""
		return await self._blocks.is_blocked_either_way(user_a, user_b)

	async def block(self, blocker_id: str, target_id: str) -> UserSummary:
		if blocker_id == target_id:
			raise ValidationError("You cannot block yourself")
		target = await self.ensure_exists(target_id)
		await self._blocks.block(blocker_id, target_id)
		obs_metrics.inc_block("block")
		LOGGER.info("user blocked", extra={"blocker_id": blocker_id, "blocked_id": target_id})
		return target

	async def unblock(self, blocker_id: str, target_id: str) -> None:
		removed = await self._blocks.unblock(blocker_id, target_id)
		if not removed:
			raise NotFound("User is not blocked")
		obs_metrics.inc_block("unblock")

	async def list_blocked(self, blocker_id: str) -> List[UserSummary]:
		blocks = await self._blocks.list_blocked(blocker_id)
		summaries = await self.summaries(block.blocked_id for block in blocks)
		return [summaries[block.blocked_id] for block in blocks]
