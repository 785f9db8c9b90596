"""Signup, signin and the password flows."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from hearth.cache.user import UserCache
from hearth.domain.auth.schemas import ChangePasswordRequest, ResetPasswordRequest, SignupRequest
from hearth.domain.exceptions import ConflictError, NotAuthorizedError, ValidationError
from hearth.domain.models import AuthRecord, User
from hearth.domain.notification import emails
from hearth.domain.readers import read_user
from hearth.infra import password as passwords
from hearth.infra.auth import AuthenticatedUser, issue_token
from hearth.infra.ids import new_id, new_token, new_u_id
from hearth.infra.uploads import BlobUploader, image_url
from hearth.queue.registry import QueueSet
from hearth.settings import settings
from hearth.store.auth import AuthRepository
from hearth.store.user import UserRepository

_LOG = logging.getLogger(__name__)


def normalise_username(username: str) -> str:
	username = username.strip()
	return username[:1].upper() + username[1:].lower()


def normalise_email(email: str) -> str:
	return email.strip().lower()


def principal_for(user: User) -> AuthenticatedUser:
	return AuthenticatedUser(
		id=user.id,
		u_id=user.u_id,
		username=user.username,
		email=user.email,
		avatar_color=user.avatar_color,
	)


class AuthService:
	def __init__(
		self,
		*,
		auth_repository: AuthRepository,
		user_repository: UserRepository,
		user_cache: UserCache,
		queues: QueueSet,
		uploader: BlobUploader,
	) -> None:
		self.auth_repo = auth_repository
		self.user_repo = user_repository
		self.user_cache = user_cache
		self.queues = queues
		self.uploader = uploader

	async def signup(self, payload: SignupRequest) -> Tuple[User, str]:
		username = normalise_username(payload.username)
		email = normalise_email(payload.email)
		if await self.auth_repo.get_by_username_or_email(username, email) is not None:
			raise ConflictError("user_exists")

		user_id = new_id()
		u_id = new_u_id()
		upload = await self.uploader.upload(payload.avatar_image, public_id=user_id)
		now = datetime.now(timezone.utc)
		auth = AuthRecord(
			id=user_id,
			u_id=u_id,
			username=username,
			email=email,
			password_hash=passwords.hash_password(payload.password),
			avatar_color=payload.avatar_color,
			created_at=now,
		)
		user = User(
			id=user_id,
			u_id=u_id,
			username=username,
			email=email,
			avatar_color=payload.avatar_color,
			profile_picture=image_url(upload.version, user_id),
			created_at=now,
		)
		await self.user_cache.save_user(user)
		await self.queues.enqueue("auth", "add_auth_user_to_db", {"auth": auth.model_dump(mode="json")})
		await self.queues.enqueue("user", "add_user_to_db", {"user": user.model_dump(mode="json")})
		_LOG.info("auth.signup", extra={"user_id": user_id})
		return user, issue_token(principal_for(user))

	async def signin(self, username: str, password: str) -> Tuple[User, str]:
		auth = await self.auth_repo.get_by_username(normalise_username(username))
		if auth is None or not passwords.verify_password(auth.password_hash, password):
			raise ValidationError("invalid_credentials")
		user = await read_user(self.user_cache, self.user_repo, auth.id)
		if user is None:
			raise ValidationError("invalid_credentials")
		return user, issue_token(principal_for(user))

	async def current_user(self, principal: AuthenticatedUser) -> Tuple[Optional[User], Optional[str]]:
		user = await read_user(self.user_cache, self.user_repo, principal.id)
		if user is None:
			return None, None
		return user, issue_token(principal_for(user))

	async def forgot_password(self, email: str) -> None:
		auth = await self.auth_repo.get_by_email(normalise_email(email))
		if auth is None:
			raise ValidationError("invalid_credentials")
		token = new_token()
		expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.password_reset_ttl_minutes)
		await self.auth_repo.set_reset_token(auth.id, token, expires_at)
		subject, html = emails.forgot_password(auth.username, f"{settings.client_url}/reset-password?token={token}")
		await self.queues.enqueue("email", "send_email", {"to": auth.email, "subject": subject, "html": html})

	async def reset_password(self, token: str, payload: ResetPasswordRequest, *, ip_address: str) -> None:
		if payload.password != payload.confirm_password:
			raise ValidationError("passwords_do_not_match")
		now = datetime.now(timezone.utc)
		auth = await self.auth_repo.get_by_reset_token(token, now)
		if auth is None:
			raise ValidationError("reset_token_expired")
		await self.auth_repo.update_password(auth.id, passwords.hash_password(payload.password))
		await self._queue_password_changed(auth, ip_address, now)

	async def change_password(
		self,
		principal: AuthenticatedUser,
		payload: ChangePasswordRequest,
		*,
		ip_address: str,
	) -> None:
		if payload.new_password != payload.confirm_password:
			raise ValidationError("passwords_do_not_match")
		auth = await self.auth_repo.get_by_username(principal.username)
		if auth is None:
			raise NotAuthorizedError()
		if not passwords.verify_password(auth.password_hash, payload.current_password):
			raise ValidationError("invalid_credentials")
		await self.auth_repo.update_password(auth.id, passwords.hash_password(payload.new_password))
		await self._queue_password_changed(auth, ip_address, datetime.now(timezone.utc))

	async def _queue_password_changed(self, auth: AuthRecord, ip_address: str, when: datetime) -> None:
		subject, html = emails.password_changed(auth.username, auth.email, ip_address, when.strftime("%d/%m/%Y %H:%M"))
		await self.queues.enqueue("email", "send_email", {"to": auth.email, "subject": subject, "html": html})
