"""PostgreSQL persistence for conversations and messages."""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence

import asyncpg

from mycircle.domain.chat.models import Conversation, ConversationKey, Message, MessageStatus
from mycircle.domain.chat.repository import ChatRepository
from mycircle.infra.postgres import parse_uuid, parse_uuids

_CONVERSATION_COLUMNS = "id, user_a, user_b, last_message_id, created_at, updated_at"
_MESSAGE_COLUMNS = "id, conversation_id, sender_id, body, status, read_by, created_at"


def _row_to_conversation(row: asyncpg.Record) -> Conversation:
    return Conversation(
        id=str(row["id"]),
        user_a=str(row["user_a"]),
        user_b=str(row["user_b"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        last_message_id=str(row["last_message_id"]) if row["last_message_id"] else None,
    )


def _row_to_message(row: asyncpg.Record) -> Message:
    return Message(
        id=str(row["id"]),
        conversation_id=str(row["conversation_id"]),
        sender_id=str(row["sender_id"]),
        body=str(row["body"]),
        status=MessageStatus(row["status"]),
        read_by=[str(reader) for reader in row["read_by"] or ()],
        created_at=row["created_at"],
    )


class PostgresChatRepository(ChatRepository):
    """Conversations keyed by the ordered (user_a, user_b) pair."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        parsed = parse_uuid(conversation_id)
        if parsed is None:
            return None
        row = await self._pool.fetchrow(
            f"SELECT {_CONVERSATION_COLUMNS} FROM chat_conversations WHERE id = $1",
            parsed,
        )
        return _row_to_conversation(row) if row else None

    async def find_conversation(self, user_one: str, user_two: str) -> Optional[Conversation]:
        key = ConversationKey.from_participants(user_one, user_two)
        if parse_uuid(key.user_a) is None or parse_uuid(key.user_b) is None:
            return None
        row = await self._pool.fetchrow(
            f"SELECT {_CONVERSATION_COLUMNS} FROM chat_conversations WHERE user_a = $1 AND user_b = $2",
            key.user_a,
            key.user_b,
        )
        return _row_to_conversation(row) if row else None

    async def get_or_create(self, user_one: str, user_two: str) -> Conversation:
        key = ConversationKey.from_participants(user_one, user_two)
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO chat_conversations (user_a, user_b)
                VALUES ($1, $2)
                ON CONFLICT (user_a, user_b) DO NOTHING
                RETURNING {_CONVERSATION_COLUMNS}
                """,
                key.user_a,
                key.user_b,
            )
            if row is None:
                row = await conn.fetchrow(
                    f"SELECT {_CONVERSATION_COLUMNS} FROM chat_conversations WHERE user_a = $1 AND user_b = $2",
                    key.user_a,
                    key.user_b,
                )
        return _row_to_conversation(row)

    async def list_conversations(self, user_id: str) -> Sequence[Conversation]:
        parsed = parse_uuid(user_id)
        if parsed is None:
            return []
        rows = await self._pool.fetch(
            f"""
            SELECT {_CONVERSATION_COLUMNS}
            FROM chat_conversations
            WHERE user_a = $1 OR user_b = $1
            ORDER BY updated_at DESC
            """,
            parsed,
        )
        return [_row_to_conversation(row) for row in rows]

    async def delete_conversation(self, conversation_id: str) -> None:
        parsed = parse_uuid(conversation_id)
        if parsed is None:
            return
        # chat_messages cascade
        await self._pool.execute("DELETE FROM chat_conversations WHERE id = $1", parsed)

    async def insert_message(self, conversation_id: str, sender_id: str, body: str) -> Message:
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                row = await conn.fetchrow(
                    f"""
                    INSERT INTO chat_messages (conversation_id, sender_id, body, read_by)
                    VALUES ($1, $2, $3, ARRAY[$2]::uuid[])
                    RETURNING {_MESSAGE_COLUMNS}
                    """,
                    conversation_id,
                    sender_id,
                    body,
                )
                await conn.execute(
                    "UPDATE chat_conversations SET last_message_id = $2, updated_at = $3 WHERE id = $1",
                    conversation_id,
                    row["id"],
                    row["created_at"],
                )
        return _row_to_message(row)

    async def get_messages(self, message_ids: Iterable[str]) -> Mapping[str, Message]:
        ids = parse_uuids(message_ids)
        if not ids:
            return {}
        rows = await self._pool.fetch(
            f"SELECT {_MESSAGE_COLUMNS} FROM chat_messages WHERE id = ANY($1::uuid[])",
            ids,
        )
        return {str(row["id"]): _row_to_message(row) for row in rows}

    async def list_messages(self, conversation_id: str) -> Sequence[Message]:
        parsed = parse_uuid(conversation_id)
        if parsed is None:
            return []
        rows = await self._pool.fetch(
            f"""
            SELECT {_MESSAGE_COLUMNS}
            FROM chat_messages
            WHERE conversation_id = $1
            ORDER BY created_at ASC
            """,
            parsed,
        )
        return [_row_to_message(row) for row in rows]

    async def mark_read(self, conversation_id: str, reader_id: str) -> int:
        status = await self._pool.execute(
            """
            UPDATE chat_messages
            SET read_by = array_append(read_by, $2::uuid), status = 'read'
            WHERE conversation_id = $1
              AND sender_id <> $2
              AND NOT ($2::uuid = ANY(read_by))
            """,
            conversation_id,
            reader_id,
        )
        return int(status.split()[-1])

    async def unread_total(self, user_id: str) -> int:
        parsed = parse_uuid(user_id)
        if parsed is None:
            return 0
        total = await self._pool.fetchval(
            """
            SELECT count(*)
            FROM chat_messages m
            JOIN chat_conversations c ON c.id = m.conversation_id
            WHERE (c.user_a = $1 OR c.user_b = $1)
              AND m.sender_id <> $1
              AND NOT ($1::uuid = ANY(m.read_by))
            """,
            parsed,
        )
        return int(total or 0)

    async def unread_by_conversation(self, user_id: str) -> Mapping[str, int]:
        parsed = parse_uuid(user_id)
        if parsed is None:
            return {}
        rows = await self._pool.fetch(
            """
            SELECT m.conversation_id, count(*) AS unread
            FROM chat_messages m
            JOIN chat_conversations c ON c.id = m.conversation_id
            WHERE (c.user_a = $1 OR c.user_b = $1)
              AND m.sender_id <> $1
              AND NOT ($1::uuid = ANY(m.read_by))
            GROUP BY m.conversation_id
            """,
            parsed,
        )
        return {str(row["conversation_id"]): int(row["unread"]) for row in rows}
