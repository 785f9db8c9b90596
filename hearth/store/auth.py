"""Credential records."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from hearth.domain.models import AuthRecord
from hearth.store.base import Repository

_COLUMNS = "id, u_id, username, email, password_hash, avatar_color, created_at"


class AuthRepository(Repository):
	async def create(self, auth: AuthRecord) -> bool:
		record = await self._fetchrow(
			f"""
			INSERT INTO auth ({_COLUMNS})
			VALUES ($1, $2, $3, $4, $5, $6, $7)
			ON CONFLICT (id) DO NOTHING
			RETURNING id
			""",
			auth.id,
			auth.u_id,
			auth.username,
			auth.email,
			auth.password_hash,
			auth.avatar_color,
			auth.created_at,
		)
		return record is not None

	async def get_by_username_or_email(self, username: str, email: str) -> Optional[AuthRecord]:
		record = await self._fetchrow(
			f"SELECT {_COLUMNS} FROM auth WHERE lower(username)=lower($1) OR lower(email)=lower($2) LIMIT 1",
			username,
			email,
		)
		return AuthRecord.from_record(record) if record else None

	async def get_by_username(self, username: str) -> Optional[AuthRecord]:
		record = await self._fetchrow(f"SELECT {_COLUMNS} FROM auth WHERE lower(username)=lower($1)", username)
		return AuthRecord.from_record(record) if record else None

	async def get_by_email(self, email: str) -> Optional[AuthRecord]:
		record = await self._fetchrow(f"SELECT {_COLUMNS} FROM auth WHERE lower(email)=lower($1)", email)
		return AuthRecord.from_record(record) if record else None

	async def get_by_reset_token(self, token: str, now: datetime) -> Optional[AuthRecord]:
		record = await self._fetchrow(
			f"SELECT {_COLUMNS} FROM auth WHERE reset_token=$1 AND reset_expires_at > $2",
			token,
			now,
		)
		return AuthRecord.from_record(record) if record else None

	async def set_reset_token(self, auth_id: str, token: str, expires_at: datetime) -> None:
		await self._execute(
			"UPDATE auth SET reset_token=$2, reset_expires_at=$3 WHERE id=$1",
			auth_id,
			token,
			expires_at,
		)

	async def update_password(self, auth_id: str, password_hash: str) -> None:
		await self._execute(
			"UPDATE auth SET password_hash=$2, reset_token=NULL, reset_expires_at=NULL WHERE id=$1",
			auth_id,
			password_hash,
		)
