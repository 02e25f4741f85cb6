"""FastAPI endpoints for post-scoped contact requests."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Response, status

from mycircle import container
from mycircle.domain.contacts.schemas import (
	ContactRequestCreate,
	ContactRequestListResponse,
	ContactRequestOut,
	ContactStatusUpdate,
	StatusUpdateResponse,
)
from mycircle.domain.contacts.service import ContactService
from mycircle.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/contacts", tags=["contacts"])


def get_service() -> ContactService:
	return container.get_contact_service()


@router.post("/request", response_model=ContactRequestOut)
async def create_request_endpoint(
	payload: ContactRequestCreate,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ContactService = Depends(get_service),
) -> ContactRequestOut:
	return await service.create_request(
		auth_user.id,
		payload.post_id,
		recipient_id=payload.recipient_id,
		message=payload.message,
	)


@router.get("/received", response_model=ContactRequestListResponse)
async def list_received_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ContactService = Depends(get_service),
) -> ContactRequestListResponse:
	return await service.list_received(auth_user.id)


@router.get("/sent", response_model=ContactRequestListResponse)
async def list_sent_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ContactService = Depends(get_service),
) -> ContactRequestListResponse:
	return await service.list_sent(auth_user.id)


@router.post("/{post_id}", response_model=ContactRequestOut)
async def create_request_for_post_endpoint(
	post_id: str,
	payload: Optional[ContactRequestCreate] = Body(default=None),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ContactService = Depends(get_service),
) -> ContactRequestOut:
	"""Same as `POST /contacts/request` with the post taken from the path; the body is optional."""
	payload = payload or ContactRequestCreate()
	return await service.create_request(
		auth_user.id,
		post_id,
		recipient_id=payload.recipient_id,
		message=payload.message,
	)


@router.put("/{request_id}/status", response_model=StatusUpdateResponse)
async def update_status_endpoint(
	request_id: str,
	payload: ContactStatusUpdate,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ContactService = Depends(get_service),
) -> StatusUpdateResponse:
	return await service.update_status(request_id, auth_user.id, payload.status)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request_endpoint(
	request_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ContactService = Depends(get_service),
) -> Response:
	await service.delete(request_id, auth_user.id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)
