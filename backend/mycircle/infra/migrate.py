"""Applies the bundled SQL migrations and records them in schema_migrations."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple

import asyncpg

LOGGER = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).with_name("migrations")

_BOOKKEEPING = """
CREATE TABLE IF NOT EXISTS schema_migrations (
	version text PRIMARY KEY,
	applied_at timestamptz NOT NULL DEFAULT now()
)
"""


def discover(directory: Path = MIGRATIONS_DIR) -> List[Tuple[str, Path]]:
	"""Return `(version, path)` pairs sorted by version; the version is the filename prefix."""
	found = []
	for path in sorted(directory.glob("*.sql")):
		version = path.stem.split("_", 1)[0]
		found.append((version, path))
	return found


async def apply_pending(pool: asyncpg.Pool, directory: Path = MIGRATIONS_DIR) -> List[str]:
	applied: List[str] = []
	async with pool.acquire() as conn:
		await conn.execute(_BOOKKEEPING)
		done = {row["version"] for row in await conn.fetch("SELECT version FROM schema_migrations")}
		for version, path in discover(directory):
			if version in done:
				continue
			async with conn.transaction():
				await conn.execute(path.read_text(encoding="utf-8"))
				await conn.execute("INSERT INTO schema_migrations (version) VALUES ($1)", version)
			LOGGER.info("migration applied", extra={"version": version, "file": path.name})
			applied.append(version)
	return applied
