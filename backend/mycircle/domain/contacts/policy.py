"""Guard checks and time-window rules for contact requests."""

from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Optional

from mycircle.domain.common.exceptions import Conflict, Cooldown, DuplicateRequest, ValidationError
from mycircle.domain.contacts.models import (
	COOLDOWN_STATES,
	DECISIONS,
	MESSAGE_MAX_LENGTH,
	OPEN_STATES,
	ContactRequest,
	ContactStatus,
)
from mycircle.domain.posts.models import Post


def expiry_for(created_at: datetime, *, days: int) -> datetime:
	return created_at + timedelta(days=days)


def normalise_message(message: Optional[str]) -> Optional[str]:
	if message is None:
		return None
	message = message.strip()
	if not message:
		return None
	if len(message) > MESSAGE_MAX_LENGTH:
		raise ValidationError(f"Message must be at most {MESSAGE_MAX_LENGTH} characters")
	return message


def resolve_recipient(post: Post, requester_id: str, recipient_id: Optional[str]) -> str:
	"""The recipient is always the post owner; an explicit id must agree with it."""
	if post.user_id == requester_id:
		raise ValidationError("Cannot request contact for your own post")
	if recipient_id and recipient_id != post.user_id:
		raise ValidationError("Recipient must be the post owner")
	return post.user_id


def guard_not_open(existing: Optional[ContactRequest]) -> None:
	if existing is not None and existing.status in OPEN_STATES:
		raise DuplicateRequest("Contact request already sent for this post")


def cooldown_remaining(existing: ContactRequest, now: datetime, *, hours: int) -> Optional[timedelta]:
	"""Time left before a closed request may be re-opened, or None once the window passed."""
	if existing.status not in COOLDOWN_STATES:
		return None
	anchor = existing.decided_at or existing.expires_at
	remaining = anchor + timedelta(hours=hours) - now
	if remaining <= timedelta(0):
		return None
	return remaining


def cooldown_error(remaining: timedelta) -> Cooldown:
	seconds = remaining.total_seconds()
	# Two decimals, rounded down so the advertised wait never exceeds the window.
	remaining_hours = math.floor(seconds / 3600 * 100) / 100
	return Cooldown(retry_after_seconds=max(1, math.ceil(seconds)), remaining_hours=remaining_hours)


def parse_decision(status: str) -> ContactStatus:
	try:
		decision = ContactStatus(status)
	except ValueError:
		raise ValidationError("Status must be 'approved' or 'rejected'") from None
	if decision not in DECISIONS:
		raise ValidationError("Status must be 'approved' or 'rejected'")
	return decision


def guard_transition(request: ContactRequest, decision: ContactStatus) -> bool:
	"""Return True when the transition must be applied, False for an idempotent repeat.

	Only pending requests move; repeating the current decision is a no-op and
	anything else conflicts.
	"""
	if request.status is ContactStatus.PENDING:
		return True
	if request.status is decision:
		return False
	raise Conflict(f"Request is already {request.status.value}")
