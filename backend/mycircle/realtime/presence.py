"""In-process registry of live realtime connections per user."""

from __future__ import annotations

from typing import Dict, Optional, Set

from mycircle.obs import metrics as obs_metrics


class PresenceRegistry:
	"""Tracks which socket ids belong to which user.

	A user is online while at least one of their connections is registered.
	`register` / `unregister` report whether the call changed that state so the
	gateway broadcasts `user_online` / `user_offline` only on the first and last
	connection.
	"""

	def __init__(self) -> None:
		self._by_user: Dict[str, Set[str]] = {}
		self._by_sid: Dict[str, str] = {}

	def register(self, user_id: str, sid: str) -> bool:
		previous = self._by_sid.get(sid)
		if previous is not None and previous != user_id:
			self.unregister(sid)
		sids = self._by_user.setdefault(user_id, set())
		first = not sids
		sids.add(sid)
		self._by_sid[sid] = user_id
		obs_metrics.presence_online(len(self._by_user))
		return first

	def unregister(self, sid: str) -> Optional[str]:
		"""Drop the sid; return the user id when it was that user's last connection."""
		user_id = self._by_sid.pop(sid, None)
		if user_id is None:
			return None
		sids = self._by_user.get(user_id)
		if sids is None:
			return None
		sids.discard(sid)
		if sids:
			return None
		del self._by_user[user_id]
		obs_metrics.presence_online(len(self._by_user))
		return user_id

	def is_online(self, user_id: str) -> bool:
		return bool(self._by_user.get(user_id))

	def user_for(self, sid: str) -> Optional[str]:
		return self._by_sid.get(sid)

	def connection_count(self, user_id: str) -> int:
		return len(self._by_user.get(user_id, ()))

	def online_users(self) -> Set[str]:
		return set(self._by_user)
