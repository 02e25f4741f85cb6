"""PostgreSQL persistence for notifications."""

from __future__ import annotations

from typing import Optional, Sequence

import asyncpg

from mycircle.domain.notifications.models import Notification, NotificationDraft, NotificationType, RelatedRef
from mycircle.domain.notifications.repository import NotificationRepository
from mycircle.infra.postgres import parse_uuid

_COLUMNS = "id, recipient_id, sender_id, type, title, message, link, related_kind, related_id, read, created_at"


def _row_to_notification(row: asyncpg.Record) -> Notification:
    return Notification(
        id=str(row["id"]),
        recipient_id=str(row["recipient_id"]),
        sender_id=str(row["sender_id"]) if row["sender_id"] else None,
        type=NotificationType(row["type"]),
        title=str(row["title"]),
        message=str(row["message"]),
        link=row["link"],
        related=RelatedRef.parse(row["related_kind"], row["related_id"]),
        read=bool(row["read"]),
        created_at=row["created_at"],
    )


class PostgresNotificationRepository(NotificationRepository):
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def insert(self, draft: NotificationDraft) -> Notification:
        row = await self._pool.fetchrow(
            f"""
            INSERT INTO notifications (recipient_id, sender_id, type, title, message, link, related_kind, related_id)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING {_COLUMNS}
            """,
            draft.recipient_id,
            draft.sender_id,
            draft.type.value,
            draft.title,
            draft.message,
            draft.link,
            draft.related.kind.value if draft.related else None,
            draft.related.id if draft.related else None,
        )
        return _row_to_notification(row)

    async def get(self, notification_id: str) -> Optional[Notification]:
        parsed = parse_uuid(notification_id)
        if parsed is None:
            return None
        row = await self._pool.fetchrow(f"SELECT {_COLUMNS} FROM notifications WHERE id = $1", parsed)
        return _row_to_notification(row) if row else None

    async def list_for(self, recipient_id: str, *, limit: int) -> Sequence[Notification]:
        parsed = parse_uuid(recipient_id)
        if parsed is None:
            return []
        rows = await self._pool.fetch(
            f"""
            SELECT {_COLUMNS}
            FROM notifications
            WHERE recipient_id = $1
            ORDER BY created_at DESC
            LIMIT $2
            """,
            parsed,
            limit,
        )
        return [_row_to_notification(row) for row in rows]

    async def unread_count(self, recipient_id: str) -> int:
        parsed = parse_uuid(recipient_id)
        if parsed is None:
            return 0
        count = await self._pool.fetchval(
            "SELECT count(*) FROM notifications WHERE recipient_id = $1 AND read = false",
            parsed,
        )
        return int(count or 0)

    async def mark_read(self, notification_id: str) -> None:
        parsed = parse_uuid(notification_id)
        if parsed is not None:
            await self._pool.execute("UPDATE notifications SET read = true WHERE id = $1", parsed)

    async def mark_all_read(self, recipient_id: str) -> int:
        parsed = parse_uuid(recipient_id)
        if parsed is None:
            return 0
        status = await self._pool.execute(
            "UPDATE notifications SET read = true WHERE recipient_id = $1 AND read = false",
            parsed,
        )
        return int(status.split()[-1])

    async def delete(self, notification_id: str) -> None:
        parsed = parse_uuid(notification_id)
        if parsed is not None:
            await self._pool.execute("DELETE FROM notifications WHERE id = $1", parsed)
