"""Block list endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from mycircle import container
from mycircle.domain.identity.schemas import BlockedUsersResponse, UserSummaryOut
from mycircle.domain.identity.service import IdentityService
from mycircle.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/users", tags=["users"])


def get_service() -> IdentityService:
	return container.get_identity_service()


@router.get("/blocked", response_model=BlockedUsersResponse)
async def list_blocked_endpoint(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: IdentityService = Depends(get_service),
) -> BlockedUsersResponse:
	blocked = await service.list_blocked(auth_user.id)
	return BlockedUsersResponse(items=[UserSummaryOut.from_summary(item) for item in blocked])


@router.post("/{user_id}/block", response_model=UserSummaryOut)
async def block_user_endpoint(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: IdentityService = Depends(get_service),
) -> UserSummaryOut:
	return UserSummaryOut.from_summary(await service.block(auth_user.id, user_id))


@router.delete("/{user_id}/block", status_code=status.HTTP_204_NO_CONTENT)
async def unblock_user_endpoint(
	user_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: IdentityService = Depends(get_service),
) -> Response:
	await service.unblock(auth_user.id, user_id)
	return Response(status_code=status.HTTP_204_NO_CONTENT)
