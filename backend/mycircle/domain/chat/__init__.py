"""Chat domain exports."""

from .models import Conversation, ConversationKey, Message, MessageStatus

__all__ = [
	"Conversation",
	"ConversationKey",
	"Message",
	"MessageStatus",
]
