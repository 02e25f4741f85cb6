"""PostgreSQL persistence for contact requests."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

import asyncpg

from mycircle.domain.common.exceptions import DuplicateRequest
from mycircle.domain.contacts.models import ContactRequest, ContactStatus
from mycircle.domain.contacts.repository import ContactRequestRepository
from mycircle.infra.postgres import parse_uuid

_COLUMNS = "id, post_id, requester_id, recipient_id, status, message, created_at, expires_at, decided_at"


def _row_to_request(row: asyncpg.Record) -> ContactRequest:
    return ContactRequest(
        id=str(row["id"]),
        post_id=str(row["post_id"]),
        requester_id=str(row["requester_id"]),
        recipient_id=str(row["recipient_id"]),
        status=ContactStatus(row["status"]),
        message=row["message"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        decided_at=row["decided_at"],
    )


class PostgresContactRequestRepository(ContactRequestRepository):
    """Conditional UPDATE ... RETURNING keeps state changes race-free across workers."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get(self, request_id: str) -> Optional[ContactRequest]:
        parsed = parse_uuid(request_id)
        if parsed is None:
            return None
        row = await self._pool.fetchrow(f"SELECT {_COLUMNS} FROM contact_requests WHERE id = $1", parsed)
        return _row_to_request(row) if row else None

    async def find(self, post_id: str, requester_id: str) -> Optional[ContactRequest]:
        if parse_uuid(post_id) is None or parse_uuid(requester_id) is None:
            return None
        row = await self._pool.fetchrow(
            f"SELECT {_COLUMNS} FROM contact_requests WHERE post_id = $1 AND requester_id = $2",
            post_id,
            requester_id,
        )
        return _row_to_request(row) if row else None

    async def insert(self, request: ContactRequest) -> ContactRequest:
        try:
            row = await self._pool.fetchrow(
                f"""
                INSERT INTO contact_requests (
                    id, post_id, requester_id, recipient_id, status, message, created_at, expires_at, decided_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                RETURNING {_COLUMNS}
                """,
                request.id,
                request.post_id,
                request.requester_id,
                request.recipient_id,
                request.status.value,
                request.message,
                request.created_at,
                request.expires_at,
                request.decided_at,
            )
        except asyncpg.UniqueViolationError as exc:
            raise DuplicateRequest("Contact request already sent for this post") from exc
        return _row_to_request(row)

    async def reopen(
        self,
        request_id: str,
        *,
        message: Optional[str],
        created_at: datetime,
        expires_at: datetime,
    ) -> Optional[ContactRequest]:
        row = await self._pool.fetchrow(
            f"""
            UPDATE contact_requests
            SET status = 'pending', message = $2, created_at = $3, expires_at = $4, decided_at = NULL
            WHERE id = $1 AND status IN ('rejected', 'expired')
            RETURNING {_COLUMNS}
            """,
            request_id,
            message,
            created_at,
            expires_at,
        )
        return _row_to_request(row) if row else None

    async def transition(
        self,
        request_id: str,
        *,
        status: ContactStatus,
        decided_at: datetime,
    ) -> Optional[ContactRequest]:
        row = await self._pool.fetchrow(
            f"""
            UPDATE contact_requests
            SET status = $2, decided_at = $3
            WHERE id = $1 AND status = 'pending'
            RETURNING {_COLUMNS}
            """,
            request_id,
            status.value,
            decided_at,
        )
        return _row_to_request(row) if row else None

    async def delete(self, request_id: str) -> None:
        parsed = parse_uuid(request_id)
        if parsed is not None:
            await self._pool.execute("DELETE FROM contact_requests WHERE id = $1", parsed)

    async def list_received(self, recipient_id: str) -> Sequence[ContactRequest]:
        parsed = parse_uuid(recipient_id)
        if parsed is None:
            return []
        rows = await self._pool.fetch(
            f"SELECT {_COLUMNS} FROM contact_requests WHERE recipient_id = $1 ORDER BY created_at DESC",
            parsed,
        )
        return [_row_to_request(row) for row in rows]

    async def list_sent(self, requester_id: str) -> Sequence[ContactRequest]:
        parsed = parse_uuid(requester_id)
        if parsed is None:
            return []
        rows = await self._pool.fetch(
            f"SELECT {_COLUMNS} FROM contact_requests WHERE requester_id = $1 ORDER BY created_at DESC",
            parsed,
        )
        return [_row_to_request(row) for row in rows]

    async def has_approved_between(self, user_a: str, user_b: str) -> bool:
        first, second = parse_uuid(user_a), parse_uuid(user_b)
        if first is None or second is None:
            return False
        found = await self._pool.fetchval(
            """
            SELECT EXISTS (
                SELECT 1 FROM contact_requests
                WHERE status = 'approved'
                  AND ((requester_id = $1 AND recipient_id = $2)
                    OR (requester_id = $2 AND recipient_id = $1))
            )
            """,
            first,
            second,
        )
        return bool(found)

    async def expire_pending(self, now: datetime) -> Sequence[ContactRequest]:
        rows = await self._pool.fetch(
            f"""
            UPDATE contact_requests
            SET status = 'expired', decided_at = $1
            WHERE status = 'pending' AND expires_at <= $1
            RETURNING {_COLUMNS}
            """,
            now,
        )
        return [_row_to_request(row) for row in rows]
