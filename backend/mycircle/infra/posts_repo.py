"""PostgreSQL read model for posts."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

import asyncpg

from mycircle.domain.posts.models import Post
from mycircle.domain.posts.repository import PostRepository
from mycircle.infra.postgres import parse_uuid, parse_uuids

_COLUMNS = "id, user_id, title, type, images, contact_phone, contact_whatsapp"


def _row_to_post(row: asyncpg.Record) -> Post:
    return Post(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        title=str(row["title"]),
        type=str(row["type"]),
        images=tuple(row["images"] or ()),
        contact_phone=row["contact_phone"],
        contact_whatsapp=row["contact_whatsapp"],
    )


class PostgresPostRepository(PostRepository):
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get(self, post_id: str) -> Optional[Post]:
        parsed = parse_uuid(post_id)
        if parsed is None:
            return None
        row = await self._pool.fetchrow(f"SELECT {_COLUMNS} FROM posts WHERE id = $1", parsed)
        return _row_to_post(row) if row else None

    async def get_many(self, post_ids: Iterable[str]) -> Mapping[str, Post]:
        ids = parse_uuids(post_ids)
        if not ids:
            return {}
        rows = await self._pool.fetch(f"SELECT {_COLUMNS} FROM posts WHERE id = ANY($1::uuid[])", ids)
        return {str(row["id"]): _row_to_post(row) for row in rows}
