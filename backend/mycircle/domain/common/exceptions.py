"""Domain exceptions shared by the contacts, chat and notification services."""

from __future__ import annotations

from fastapi import status


class CircleError(Exception):
	"""Base class for messaging domain errors.

	`kind` is the stable machine-readable code surfaced as the response `detail`;
	`message` is the human text.
	"""

	status_code: int = status.HTTP_400_BAD_REQUEST
	kind: str = "circle_error"
	message: str = "Request failed"

	def __init__(self, message: str | None = None) -> None:
		super().__init__(message or self.message)
		if message:
			self.message = message


class ValidationError(CircleError):
	kind = "validation_error"
	message = "Invalid request"


class Unauthorized(CircleError):
	status_code = status.HTTP_401_UNAUTHORIZED
	kind = "unauthorized"
	message = "Not authorized"


class NotFound(CircleError):
	status_code = status.HTTP_404_NOT_FOUND
	kind = "not_found"
	message = "Not found"


class NotConnected(CircleError):
	"""No approved contact request links the two users."""

	status_code = status.HTTP_403_FORBIDDEN
	kind = "not_connected"
	message = "You can only message users after your contact request has been approved"


class Blocked(CircleError):
	status_code = status.HTTP_403_FORBIDDEN
	kind = "blocked"
	message = "You cannot interact with this user"


class ContentViolation(CircleError):
	kind = "content_violation"
	message = "Message blocked by safety filter"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(f"Message blocked: {reason}" if reason else None)
		self.reason = reason


class Cooldown(CircleError):
	"""A rejected or expired request is still inside its cooldown window."""

	status_code = status.HTTP_429_TOO_MANY_REQUESTS
	kind = "cooldown"

	def __init__(self, retry_after_seconds: int, remaining_hours: float) -> None:
		super().__init__(f"Please wait {remaining_hours} hours before requesting again")
		self.retry_after_seconds = retry_after_seconds
		self.remaining_hours = remaining_hours


class Conflict(CircleError):
	status_code = status.HTTP_409_CONFLICT
	kind = "conflict"
	message = "Request is no longer in a state that allows this change"


class DuplicateRequest(Conflict):
	"""A pending or approved request already exists for this post."""

	status_code = status.HTTP_400_BAD_REQUEST
	kind = "duplicate_request"
	message = "Request already exists"
