"""Contact request lifecycle: create, decide, list, withdraw and expire."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional
from uuid import uuid4

from mycircle.domain.chat.repository import ChatRepository
from mycircle.domain.common.exceptions import (
	Blocked,
	CircleError,
	Conflict,
	DuplicateRequest,
	NotFound,
	Unauthorized,
	ValidationError,
)
from mycircle.domain.contacts import audit, policy
from mycircle.domain.contacts.models import ContactRequest, ContactStatus
from mycircle.domain.contacts.repository import ContactRequestRepository
from mycircle.domain.contacts.schemas import (
	ContactRequestListResponse,
	ContactRequestOut,
	PostSummaryOut,
	StatusUpdateResponse,
)
from mycircle.domain.identity.models import UserSummary
from mycircle.domain.identity.schemas import UserSummaryOut
from mycircle.domain.identity.service import IdentityService
from mycircle.domain.notifications.models import NotificationDraft, NotificationType, RelatedRef
from mycircle.domain.notifications.service import NotificationService
from mycircle.domain.posts.models import Post
from mycircle.domain.posts.repository import PostRepository
from mycircle.obs import metrics as obs_metrics

LOGGER = logging.getLogger(__name__)

REQUESTS_LINK = "/requests"


def _utcnow() -> datetime:
	return datetime.now(timezone.utc)


class ContactService:
	def __init__(
		self,
		requests: ContactRequestRepository,
		posts: PostRepository,
		identity: IdentityService,
		chats: ChatRepository,
		notifications: NotificationService,
		*,
		expiry_days: int = 7,
		cooldown_hours: int = 24,
		clock: Callable[[], datetime] = _utcnow,
	) -> None:
		self._requests = requests
		self._posts = posts
		self._identity = identity
		self._chats = chats
		self._notifications = notifications
		self._expiry_days = expiry_days
		self._cooldown_hours = cooldown_hours
		self._clock = clock

	async def create_request(
		self,
		requester_id: str,
		post_id: Optional[str],
		*,
		recipient_id: Optional[str] = None,
		message: Optional[str] = None,
	) -> ContactRequestOut:
		try:
			request, post, reopened = await self._create(requester_id, post_id, recipient_id, message)
		except CircleError as exc:
			obs_metrics.inc_contact_reject(exc.kind)
			raise
		obs_metrics.inc_contact_request("reopened" if reopened else "created")
		await audit.log_contact_event("contact.reopened" if reopened else "contact.created", request.to_audit())
		requester = await self._identity.summary(requester_id)
		await self._notifications.notify(
			NotificationDraft(
				recipient_id=request.recipient_id,
				sender_id=requester_id,
				type=NotificationType.REQUEST,
				title="New Contact Request",
				message=f'{requester.display_name} wants to contact you about "{post.title}"',
				link=REQUESTS_LINK,
				related=RelatedRef.request(request.id),
			)
		)
		return (await self._enrich([request], include_contact=False))[0]

	async def _create(
		self,
		requester_id: str,
		post_id: Optional[str],
		recipient_id: Optional[str],
		message: Optional[str],
	) -> tuple[ContactRequest, Post, bool]:
		if not post_id:
			raise ValidationError("Post ID is required")
		message = policy.normalise_message(message)
		post = await self._posts.get(post_id)
		if post is None:
			raise NotFound("Post not found")
		recipient = policy.resolve_recipient(post, requester_id, recipient_id)
		existing = await self._requests.find(post_id, requester_id)
		policy.guard_not_open(existing)
		if await self._identity.is_blocked(requester_id, recipient):
			raise Blocked("You cannot make a request to this user")
		now = self._clock()
		expires_at = policy.expiry_for(now, days=self._expiry_days)
		if existing is not None:
			remaining = policy.cooldown_remaining(existing, now, hours=self._cooldown_hours)
			if remaining is not None:
				raise policy.cooldown_error(remaining)
			reopened = await self._requests.reopen(
				existing.id,
				message=message,
				created_at=now,
				expires_at=expires_at,
			)
			if reopened is None:
				# Another request re-opened it first.
				raise DuplicateRequest("Contact request already sent for this post")
			return reopened, post, True
		created = await self._requests.insert(
			ContactRequest(
				id=str(uuid4()),
				post_id=post_id,
				requester_id=requester_id,
				recipient_id=recipient,
				status=ContactStatus.PENDING,
				message=message,
				created_at=now,
				expires_at=expires_at,
			)
		)
		return created, post, False

	async def update_status(self, request_id: str, acting_user_id: str, status: str) -> StatusUpdateResponse:
		"""Approve or reject a pending request as its recipient.

		Approval get-or-creates the pair's conversation and returns its id. Repeating
		the current decision returns the same result without a second notification.
		"""
		decision = policy.parse_decision(status)
		request = await self._requests.get(request_id)
		if request is None:
			raise NotFound("Request not found")
		if request.recipient_id != acting_user_id:
			raise Unauthorized("Not authorized")
		now = self._clock()
		if request.is_overdue(now):
			expired = await self._requests.transition(request.id, status=ContactStatus.EXPIRED, decided_at=now)
			if expired is not None:
				obs_metrics.inc_contact_transition(ContactStatus.EXPIRED.value)
				await audit.log_contact_event("contact.expired", expired.to_audit())
			raise Conflict("Request has expired")

		apply = policy.guard_transition(request, decision)
		if apply:
			updated = await self._requests.transition(request.id, status=decision, decided_at=now)
			if updated is None:
				current = await self._requests.get(request_id)
				if current is None:
					raise NotFound("Request not found")
				apply = policy.guard_transition(current, decision)
				request = current
			else:
				request = updated

		conversation_id: Optional[str] = None
		if decision is ContactStatus.APPROVED:
			conversation = await self._chats.get_or_create(request.requester_id, request.recipient_id)
			conversation_id = conversation.id

		if apply:
			obs_metrics.inc_contact_transition(decision.value)
			await audit.log_contact_event(f"contact.{decision.value}", request.to_audit())
			await self._notify_decision(request, conversation_id)
		else:
			LOGGER.info("contact decision repeated", extra={"request_id": request.id, "status": decision.value})

		enriched = (await self._enrich([request], include_contact=True))[0]
		return StatusUpdateResponse(request=enriched, conversation_id=conversation_id)

	async def _notify_decision(self, request: ContactRequest, conversation_id: Optional[str]) -> None:
		post = await self._posts.get(request.post_id)
		title = post.title if post else "a post"
		recipient = await self._identity.summary(request.recipient_id)
		if request.status is ContactStatus.APPROVED:
			draft = NotificationDraft(
				recipient_id=request.requester_id,
				sender_id=request.recipient_id,
				type=NotificationType.APPROVAL,
				title="Request Approved",
				message=f'{recipient.display_name} approved your request for "{title}". You can now chat.',
				link=f"/chat/{conversation_id}" if conversation_id else "/chat",
				related=RelatedRef.conversation(conversation_id) if conversation_id else RelatedRef.request(request.id),
			)
		else:
			draft = NotificationDraft(
				recipient_id=request.requester_id,
				sender_id=request.recipient_id,
				type=NotificationType.INFO,
				title="Request Declined",
				message=f'{recipient.display_name} declined your request for "{title}".',
				link=REQUESTS_LINK,
				related=RelatedRef.request(request.id),
			)
		await self._notifications.notify(draft)

	async def list_received(self, user_id: str) -> ContactRequestListResponse:
		items = await self._requests.list_received(user_id)
		return ContactRequestListResponse(items=await self._enrich(items, include_contact=True))

	async def list_sent(self, user_id: str) -> ContactRequestListResponse:
		"""Requests the user sent; post contact details only for approved ones."""
		items = await self._requests.list_sent(user_id)
		return ContactRequestListResponse(items=await self._enrich(items, include_contact=None))

	async def delete(self, request_id: str, acting_user_id: str) -> None:
		request = await self._requests.get(request_id)
		if request is None:
			raise NotFound("Request not found")
		if not request.is_party(acting_user_id):
			raise Unauthorized("Not authorized")
		await self._requests.delete(request_id)
		await audit.log_contact_event("contact.deleted", {**request.to_audit(), "actor_id": acting_user_id})

	async def expire_pending(self, now: Optional[datetime] = None) -> int:
		"""Expire overdue pending requests and tell each requester."""
		now = now or self._clock()
		expired = await self._requests.expire_pending(now)
		if not expired:
			return 0
		obs_metrics.inc_contact_transition(ContactStatus.EXPIRED.value, len(expired))
		posts = await self._posts.get_many({item.post_id for item in expired})
		for request in expired:
			await audit.log_contact_event("contact.expired", request.to_audit())
			post = posts.get(request.post_id)
			await self._notifications.notify(
				NotificationDraft(
					recipient_id=request.requester_id,
					type=NotificationType.INFO,
					title="Request Expired",
					message=f'Your contact request for "{post.title if post else "a post"}" has expired.',
					link=REQUESTS_LINK,
					related=RelatedRef.request(request.id),
				)
			)
		LOGGER.info("expired pending contact requests", extra={"count": len(expired)})
		return len(expired)

	async def _enrich(
		self,
		items: Iterable[ContactRequest],
		*,
		include_contact: Optional[bool],
	) -> List[ContactRequestOut]:
		"""Attach post and user summaries.

		`include_contact=None` exposes contact details per item, only when approved.
		"""
		items = list(items)
		posts: Dict[str, Post] = dict(await self._posts.get_many({item.post_id for item in items}))
		users: Dict[str, UserSummary] = await self._identity.summaries(
			uid for item in items for uid in (item.requester_id, item.recipient_id)
		)
		result: List[ContactRequestOut] = []
		for item in items:
			post = posts.get(item.post_id)
			show_contact = include_contact if include_contact is not None else item.status is ContactStatus.APPROVED
			result.append(
				ContactRequestOut(
					id=item.id,
					post_id=item.post_id,
					requester_id=item.requester_id,
					recipient_id=item.recipient_id,
					status=item.status.value,
					message=item.message,
					created_at=item.created_at,
					expires_at=item.expires_at,
					decided_at=item.decided_at,
					post=PostSummaryOut(**post.summary(include_contact=show_contact)) if post else None,
					requester=UserSummaryOut.from_summary(users[item.requester_id]),
					recipient=UserSummaryOut.from_summary(users[item.recipient_id]),
				)
			)
		return result
