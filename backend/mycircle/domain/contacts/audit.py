"""Audit helpers for contact request transitions."""

from __future__ import annotations

import logging
from typing import Dict

from mycircle.infra.redis import redis_client

LOGGER = logging.getLogger(__name__)

STREAM = "x:contacts.events"


async def log_contact_event(event: str, fields: Dict[str, str]) -> None:
	payload = {"event": event, **fields}
	try:
		await redis_client.xadd_capped(STREAM, payload)
	except Exception:
		LOGGER.warning("contact audit append failed", extra={"event": event}, exc_info=True)
