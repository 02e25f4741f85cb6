"""AsyncPG pool management for the backend."""

from __future__ import annotations

import uuid
from typing import Iterable, List, Optional

import asyncpg

from mycircle.settings import settings

_pool: Optional[asyncpg.pool.Pool] = None


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			ssl="require" if settings.postgres_ssl else "disable",
		)
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	assert _pool is not None
	return _pool


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None


def parse_uuid(value: object) -> Optional[uuid.UUID]:
	"""Return the UUID for a client-supplied id, or None when it is malformed."""
	if isinstance(value, uuid.UUID):
		return value
	try:
		return uuid.UUID(str(value))
	except (TypeError, ValueError):
		return None


def parse_uuids(values: Iterable[object]) -> List[uuid.UUID]:
	"""Distinct well-formed UUIDs from `values`; malformed entries are skipped."""
	parsed = {parse_uuid(value) for value in values if value}
	parsed.discard(None)
	return list(parsed)
