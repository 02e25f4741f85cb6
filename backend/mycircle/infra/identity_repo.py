"""PostgreSQL persistence for users and block lists."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

import asyncpg

from mycircle.domain.identity.models import Block, UserSummary
from mycircle.domain.identity.repository import BlockRepository, UserRepository
from mycircle.infra.postgres import parse_uuid, parse_uuids


def _row_to_user(row: asyncpg.Record) -> UserSummary:
    return UserSummary(
        id=str(row["id"]),
        display_name=str(row["display_name"]),
        avatar_url=row["avatar_url"],
    )


def _row_to_block(row: asyncpg.Record) -> Block:
    return Block(
        blocker_id=str(row["blocker_id"]),
        blocked_id=str(row["blocked_id"]),
        created_at=row["created_at"],
    )


class PostgresUserRepository(UserRepository):
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get(self, user_id: str) -> Optional[UserSummary]:
        parsed = parse_uuid(user_id)
        if parsed is None:
            return None
        row = await self._pool.fetchrow(
            "SELECT id, display_name, avatar_url FROM users WHERE id = $1 AND deleted_at IS NULL",
            parsed,
        )
        return _row_to_user(row) if row else None

    async def get_many(self, user_ids: Iterable[str]) -> Mapping[str, UserSummary]:
        ids = parse_uuids(user_ids)
        if not ids:
            return {}
        rows = await self._pool.fetch(
            "SELECT id, display_name, avatar_url FROM users WHERE id = ANY($1::uuid[]) AND deleted_at IS NULL",
            ids,
        )
        return {str(row["id"]): _row_to_user(row) for row in rows}


class PostgresBlockRepository(BlockRepository):
    """Stores directed block edges in user_blocks; lookups check both directions."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def block(self, blocker_id: str, blocked_id: str) -> Block:
        row = await self._pool.fetchrow(
            """
            INSERT INTO user_blocks (blocker_id, blocked_id)
            VALUES ($1, $2)
            ON CONFLICT (blocker_id, blocked_id) DO UPDATE SET blocker_id = EXCLUDED.blocker_id
            RETURNING blocker_id, blocked_id, created_at
            """,
            blocker_id,
            blocked_id,
        )
        return _row_to_block(row)

    async def unblock(self, blocker_id: str, blocked_id: str) -> bool:
        blocker, blocked = parse_uuid(blocker_id), parse_uuid(blocked_id)
        if blocker is None or blocked is None:
            return False
        status = await self._pool.execute(
            "DELETE FROM user_blocks WHERE blocker_id = $1 AND blocked_id = $2",
            blocker,
            blocked,
        )
        return status.endswith(" 1")

    async def is_blocked_either_way(self, user_a: str, user_b: str) -> bool:
        first, second = parse_uuid(user_a), parse_uuid(user_b)
        if first is None or second is None:
            return False
        found = await self._pool.fetchval(
            """
            SELECT EXISTS (
                SELECT 1 FROM user_blocks
                WHERE (blocker_id = $1 AND blocked_id = $2)
                   OR (blocker_id = $2 AND blocked_id = $1)
            )
            """,
            first,
            second,
        )
        return bool(found)

    async def list_blocked(self, blocker_id: str) -> Sequence[Block]:
        parsed = parse_uuid(blocker_id)
        if parsed is None:
            return []
        rows = await self._pool.fetch(
            """
            SELECT blocker_id, blocked_id, created_at
            FROM user_blocks
            WHERE blocker_id = $1
            ORDER BY created_at DESC
            """,
            parsed,
        )
        return [_row_to_block(row) for row in rows]
