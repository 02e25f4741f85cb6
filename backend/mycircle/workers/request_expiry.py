"""Worker that expires pending contact requests past their deadline."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from mycircle import container
from mycircle.domain.contacts.service import ContactService
from mycircle.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)
JOB_NAME = "contact-request-expiry"


class RequestExpiryWorker:
	"""Single sweep per call; scheduling is left to the caller."""

	def __init__(self, service_factory: Callable[[], ContactService] = container.get_contact_service) -> None:
		self._service_factory = service_factory

	async def run_once(self, now: Optional[datetime] = None) -> int:
		started = datetime.now(timezone.utc)
		try:
			expired = await self._service_factory().expire_pending(now)
		except Exception:
			obs_metrics.record_job_run(JOB_NAME, result="error")
			_LOG.exception("request_expiry.run_failed")
			return 0
		duration = (datetime.now(timezone.utc) - started).total_seconds()
		obs_metrics.record_job_run(JOB_NAME, result="success", duration_seconds=duration)
		return expired


__all__ = ["JOB_NAME", "RequestExpiryWorker"]
