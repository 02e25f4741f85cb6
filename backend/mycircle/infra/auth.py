"""Authentication helpers for FastAPI endpoints and socket handshakes.

- Bearer JWTs (HS256) are verified against settings.secret_key.
- Dev headers (`X-User-Id`) are only respected in development.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import InvalidTokenError

from mycircle.infra import jwt as jwt_helper
from mycircle.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	display_name: Optional[str] = None
	session_id: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode an access JWT; any decode failure surfaces as 401 invalid_token."""
	try:
		payload = jwt_helper.decode_access(token)
	except InvalidTokenError:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	display_name = payload.get("name") or payload.get("display_name")
	session_id = payload.get("sid")
	return AuthenticatedUser(
		id=str(payload["sub"]).strip(),
		display_name=str(display_name) if display_name is not None else None,
		session_id=str(session_id) if session_id is not None else None,
	)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow the `X-User-Id` header. In all other environments,
	headers are ignored and a valid Bearer JWT is required.
	"""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)
	if settings.is_dev() and x_user_id and x_user_id.strip():
		return AuthenticatedUser(id=x_user_id.strip())
	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")


def resolve_handshake_identity(
	auth: Optional[Mapping[str, Any]],
	headers: Mapping[str, str],
) -> Optional[AuthenticatedUser]:
	"""Resolve a socket handshake to a user, or None when it carries no valid identity.

	Checks `auth.token`, then the Authorization header, then (development only)
	`auth.userId` / `X-User-Id`. Header keys are expected lower-cased.
	"""
	auth = auth or {}
	token = auth.get("token")
	if not token:
		authorization = headers.get("authorization") or ""
		if authorization.lower().startswith("bearer "):
			token = authorization.split(" ", 1)[1].strip()
	if token:
		try:
			return verify_access_jwt(str(token))
		except HTTPException:
			return None
	if settings.is_dev():
		user_id = auth.get("userId") or headers.get("x-user-id")
		if user_id and str(user_id).strip():
			return AuthenticatedUser(id=str(user_id).strip())
	return None
