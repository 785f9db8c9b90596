"""Authentication helpers for FastAPI endpoints.

Bearer JWTs are always accepted. In development the X-User-* headers are
honoured as well so local tools and tests can impersonate users.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from hearth.domain.exceptions import NotAuthorizedError
from hearth.infra import jwt as jwt_helper
from hearth.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	u_id: str
	username: str
	email: str = ""
	avatar_color: str = ""

	def claims(self) -> dict[str, object]:
		return {
			"sub": self.id,
			"u_id": self.u_id,
			"username": self.username,
			"email": self.email,
			"avatar_color": self.avatar_color,
		}


_bearer_scheme = HTTPBearer(auto_error=False)


def issue_token(user: AuthenticatedUser) -> str:
	return jwt_helper.encode_access(user.claims())


def verify_access_jwt(token: str) -> AuthenticatedUser:
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		# every decode failure is reported the same way
		raise NotAuthorizedError("invalid_token") from None
	return AuthenticatedUser(
		id=str(payload["sub"]),
		u_id=str(payload["u_id"]),
		username=str(payload["username"]),
		email=str(payload["email"]),
		avatar_color=str(payload.get("avatar_color") or ""),
	)


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	x_user_uid: Optional[str] = Header(default=None, alias="X-User-UId"),
	x_username: Optional[str] = Header(default=None, alias="X-Username"),
	x_user_email: Optional[str] = Header(default=None, alias="X-User-Email"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user from a bearer token or, in dev, headers."""
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)

	if settings.is_dev() and x_user_id:
		return AuthenticatedUser(
			id=x_user_id,
			u_id=x_user_uid or "0",
			username=x_username or x_user_id,
			email=x_user_email or "",
		)

	raise NotAuthorizedError("invalid_token")
