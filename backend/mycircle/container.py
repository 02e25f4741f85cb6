"""Lightweight service container shared by the API routers and the socket gateway."""

from __future__ import annotations

from typing import Optional

import asyncpg

from mycircle.domain.chat.repository import ChatRepository, InMemoryChatRepository
from mycircle.domain.chat.safety import SafetyChecker, build_checker
from mycircle.domain.chat.service import ChatService
from mycircle.domain.contacts.repository import ContactRequestRepository, InMemoryContactRequestRepository
from mycircle.domain.contacts.service import ContactService
from mycircle.domain.identity.repository import (
    BlockRepository,
    InMemoryBlockRepository,
    InMemoryUserRepository,
    UserRepository,
)
from mycircle.domain.identity.service import IdentityService
from mycircle.domain.notifications.repository import InMemoryNotificationRepository, NotificationRepository
from mycircle.domain.notifications.service import NotificationService
from mycircle.domain.posts.repository import InMemoryPostRepository, PostRepository
from mycircle.infra.chat_repo import PostgresChatRepository
from mycircle.infra.contacts_repo import PostgresContactRequestRepository
from mycircle.infra.identity_repo import PostgresBlockRepository, PostgresUserRepository
from mycircle.infra.notifications_repo import PostgresNotificationRepository
from mycircle.infra.posts_repo import PostgresPostRepository
from mycircle.realtime.presence import PresenceRegistry
from mycircle.realtime.rooms import RoomBroker, SocketIORoomBroker
from mycircle.settings import settings

_users: UserRepository = InMemoryUserRepository()
_blocks: BlockRepository = InMemoryBlockRepository()
_posts: PostRepository = InMemoryPostRepository()
_requests: ContactRequestRepository = InMemoryContactRequestRepository()
_chats: ChatRepository = InMemoryChatRepository()
_notification_repo: NotificationRepository = InMemoryNotificationRepository()
_presence = PresenceRegistry()
_broker: RoomBroker = SocketIORoomBroker()
_safety: SafetyChecker = build_checker(settings.safety_endpoint, timeout=settings.safety_timeout_seconds)
_identity: IdentityService
_notifications: NotificationService
_contacts: ContactService
_chat: ChatService


def _wire() -> None:
    global _identity, _notifications, _contacts, _chat
    _identity = IdentityService(_users, _blocks, _presence)
    _notifications = NotificationService(
        _notification_repo,
        _identity,
        _broker,
        list_limit=settings.notification_list_limit,
    )
    _contacts = ContactService(
        _requests,
        _posts,
        _identity,
        _chats,
        _notifications,
        expiry_days=settings.contact_request_expiry_days,
        cooldown_hours=settings.contact_request_cooldown_hours,
    )
    _chat = ChatService(
        _chats,
        _requests,
        _identity,
        _safety,
        _broker,
        max_length=settings.chat_message_max_length,
    )


def configure(
    *,
    users: Optional[UserRepository] = None,
    blocks: Optional[BlockRepository] = None,
    posts: Optional[PostRepository] = None,
    requests: Optional[ContactRequestRepository] = None,
    chats: Optional[ChatRepository] = None,
    notifications: Optional[NotificationRepository] = None,
    presence: Optional[PresenceRegistry] = None,
    broker: Optional[RoomBroker] = None,
    safety: Optional[SafetyChecker] = None,
) -> None:
    """Swap any collaborator and rebuild the services on top of it."""
    global _users, _blocks, _posts, _requests, _chats, _notification_repo, _presence, _broker, _safety
    if users is not None:
        _users = users
    if blocks is not None:
        _blocks = blocks
    if posts is not None:
        _posts = posts
    if requests is not None:
        _requests = requests
    if chats is not None:
        _chats = chats
    if notifications is not None:
        _notification_repo = notifications
    if presence is not None:
        _presence = presence
    if broker is not None:
        _broker = broker
    if safety is not None:
        _safety = safety
    _wire()


def configure_postgres(pool: asyncpg.Pool) -> None:
    configure(
        users=PostgresUserRepository(pool),
        blocks=PostgresBlockRepository(pool),
        posts=PostgresPostRepository(pool),
        requests=PostgresContactRequestRepository(pool),
        chats=PostgresChatRepository(pool),
        notifications=PostgresNotificationRepository(pool),
    )


def reset_in_memory() -> None:
    """Fresh in-memory stores, presence and broker; used by tests and local runs."""
    configure(
        users=InMemoryUserRepository(),
        blocks=InMemoryBlockRepository(),
        posts=InMemoryPostRepository(),
        requests=InMemoryContactRequestRepository(),
        chats=InMemoryChatRepository(),
        notifications=InMemoryNotificationRepository(),
        presence=PresenceRegistry(),
        broker=SocketIORoomBroker(),
    )


def get_users() -> UserRepository:
    return _users


def get_posts() -> PostRepository:
    return _posts


def get_presence() -> PresenceRegistry:
    return _presence


def get_broker() -> RoomBroker:
    return _broker


def get_identity_service() -> IdentityService:
    return _identity


def get_notification_service() -> NotificationService:
    return _notifications


def get_contact_service() -> ContactService:
    return _contacts


def get_chat_service() -> ChatService:
    return _chat


_wire()
