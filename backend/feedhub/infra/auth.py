"""Authentication helpers for FastAPI endpoints.

Credentials are issued elsewhere; here we only resolve the caller identity:
- a Bearer JWT (HS256, settings.secret_key) in every environment
- an X-User-Id header, honoured in development only
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from feedhub.infra import jwt as jwt_helper
from feedhub.obs import logging as obs_logging
from feedhub.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	name: Optional[str] = None
	session_id: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated.")
	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated.")
	name = payload.get("name")
	session_id = payload.get("sid")
	return AuthenticatedUser(
		id=sub,
		name=str(name) if name is not None else None,
		session_id=str(session_id) if session_id is not None else None,
	)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user or fail with 401."""
	user: Optional[AuthenticatedUser] = None
	if credentials and credentials.scheme.lower() == "bearer":
		user = verify_access_jwt(credentials.credentials)
	elif settings.is_dev() and x_user_id:
		user = AuthenticatedUser(id=x_user_id.strip())

	if user is not None:
		obs_logging.bind_context(user_id=user.id)
		return user
	raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated.")
