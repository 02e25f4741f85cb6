"""Contact request domain exports."""

from .models import (  # noqa: F401
	COOLDOWN_STATES,
	DECISIONS,
	MESSAGE_MAX_LENGTH,
	OPEN_STATES,
	ContactRequest,
	ContactStatus,
)
