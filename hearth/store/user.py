"""Durable user profiles."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from hearth.domain.models import User
from hearth.infra.postgres import get_pool
from hearth.store.base import Repository, set_clause

_COLUMNS = (
	"id, u_id, username, email, avatar_color, profile_picture, posts_count, followers_count, "
	"following_count, blocked, blocked_by, notifications, social, work, school, location, quote, "
	"bg_image_id, bg_image_version, created_at"
)

_UPDATABLE = frozenset(
	{
		"profile_picture",
		"notifications",
		"social",
		"work",
		"school",
		"location",
		"quote",
		"bg_image_id",
		"bg_image_version",
	}
)

_COUNTERS = frozenset({"posts_count", "followers_count", "following_count"})


class UserRepository(Repository):
	async def create(self, user: User) -> bool:
		record = await self._fetchrow(
			f"""
			INSERT INTO users ({_COLUMNS})
			VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16, $17, $18, $19, $20)
			ON CONFLICT (id) DO NOTHING
			RETURNING id
			""",
			user.id,
			user.u_id,
			user.username,
			user.email,
			user.avatar_color,
			user.profile_picture,
			user.posts_count,
			user.followers_count,
			user.following_count,
			list(user.blocked),
			list(user.blocked_by),
			user.notifications.model_dump(),
			user.social.model_dump(),
			user.work,
			user.school,
			user.location,
			user.quote,
			user.bg_image_id,
			user.bg_image_version,
			user.created_at,
		)
		return record is not None

	async def get_by_id(self, user_id: str) -> Optional[User]:
		record = await self._fetchrow(f"SELECT {_COLUMNS} FROM users WHERE id=$1", user_id)
		return User.from_record(record) if record else None

	async def get_by_username(self, username: str) -> Optional[User]:
		record = await self._fetchrow(f"SELECT {_COLUMNS} FROM users WHERE lower(username)=lower($1)", username)
		return User.from_record(record) if record else None

	async def get_many(self, user_ids: Sequence[str]) -> List[User]:
		if not user_ids:
			return []
		records = await self._fetch(f"SELECT {_COLUMNS} FROM users WHERE id = ANY($1::text[])", list(user_ids))
		by_id = {record["id"]: User.from_record(record) for record in records}
		return [by_id[user_id] for user_id in user_ids if user_id in by_id]

	async def list_users(self, exclude_user_id: str | None, skip: int, limit: int) -> List[User]:
		records = await self._fetch(
			f"""
			SELECT {_COLUMNS} FROM users
			WHERE ($1::text IS NULL OR id <> $1)
			ORDER BY u_id DESC
			OFFSET $2 LIMIT $3
			""",
			exclude_user_id,
			skip,
			limit,
		)
		return [User.from_record(record) for record in records]

	async def count_users(self) -> int:
		return int(await self._fetchval("SELECT count(*) FROM users") or 0)

	async def random_users(self, exclude_ids: Sequence[str], limit: int) -> List[User]:
		records = await self._fetch(
			f"SELECT {_COLUMNS} FROM users WHERE NOT (id = ANY($1::text[])) ORDER BY random() LIMIT $2",
			list(exclude_ids),
			limit,
		)
		return [User.from_record(record) for record in records]

	async def update_fields(self, user_id: str, changes: Mapping[str, Any]) -> None:
		assignments, values = set_clause(changes, _UPDATABLE)
		if not assignments:
			return
		await self._execute(f"UPDATE users SET {assignments} WHERE id=$1", user_id, *values)

	async def increment(self, user_id: str, field: str, delta: int) -> None:
		if field not in _COUNTERS:
			raise ValueError(f"{field} is not a counter")
		await self._execute(f"UPDATE users SET {field} = GREATEST({field} + $2, 0) WHERE id=$1", user_id, delta)

	async def set_blocked(self, user_id: str, target_id: str, *, blocked: bool) -> None:
		"""Maintain both sides of a block edge in one transaction."""
		op = "array_append" if blocked else "array_remove"
		guard = "AND NOT ($2 = ANY(blocked))" if blocked else ""
		guard_by = "AND NOT ($1 = ANY(blocked_by))" if blocked else ""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				await conn.execute(
					f"UPDATE users SET blocked = {op}(blocked, $2) WHERE id=$1 {guard}",
					user_id,
					target_id,
				)
				await conn.execute(
					f"UPDATE users SET blocked_by = {op}(blocked_by, $1) WHERE id=$2 {guard_by}",
					user_id,
					target_id,
				)
