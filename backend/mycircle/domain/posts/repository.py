"""Post lookup repository."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Protocol

from mycircle.domain.posts.models import Post


class PostRepository(Protocol):
	async def get(self, post_id: str) -> Optional[Post]:
		...

	async def get_many(self, post_ids: Iterable[str]) -> Mapping[str, Post]:
		...


class InMemoryPostRepository(PostRepository):
	def __init__(self, posts: Iterable[Post] = ()) -> None:
		self._posts: Dict[str, Post] = {post.id: post for post in posts}

	def add(self, post: Post) -> Post:
		self._posts[post.id] = post
		return post

	async def get(self, post_id: str) -> Optional[Post]:
		return self._posts.get(post_id)

	async def get_many(self, post_ids: Iterable[str]) -> Mapping[str, Post]:
		return {pid: self._posts[pid] for pid in set(post_ids) if pid in self._posts}
