"""Read-only post projection consumed by contact requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(slots=True)
class Post:
	id: str
	user_id: str
	title: str
	type: str
	images: Tuple[str, ...] = field(default_factory=tuple)
	contact_phone: Optional[str] = None
	contact_whatsapp: Optional[str] = None

	def summary(self, *, include_contact: bool) -> dict:
		"""Return the post as embedded in request listings.

		Contact details are only exposed once the viewer's request was approved.
		"""
		data = {
			"id": self.id,
			"title": self.title,
			"type": self.type,
			"images": list(self.images),
		}
		if include_contact:
			data["contact_phone"] = self.contact_phone
			data["contact_whatsapp"] = self.contact_whatsapp
		return data
