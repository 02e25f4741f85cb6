"""FastAPI endpoints for the notification inbox."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from mycircle import container
from mycircle.domain.notifications.schemas import (
	MarkAllReadResponse,
	NotificationListResponse,
	UnreadCountResponse,
)
from mycircle.domain.notifications.service import NotificationService
from mycircle.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_service() -> NotificationService:
	return container.get_notification_service()


@router.get("", response_model=NotificationListResponse)
async def list_notifications_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: NotificationService = Depends(get_service),
) -> NotificationListResponse:
	return await service.list_for(auth_user.id)


@router.get("/unread/count", response_model=UnreadCountResponse)
async def unread_count_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: NotificationService = Depends(get_service),
) -> UnreadCountResponse:
	return UnreadCountResponse(count=await service.unread_count(auth_user.id))


@router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_read_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: NotificationService = Depends(get_service),
) -> MarkAllReadResponse:
	return MarkAllReadResponse(updated=await service.mark_all_read(auth_user.id))


@router.put("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_read_endpoint(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: NotificationService = Depends(get_service),
) -> Response:
	await service.mark_read(notification_id, auth_user.id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification_endpoint(
	notification_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: NotificationService = Depends(get_service),
) -> Response:
	await service.delete(notification_id, auth_user.id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)
