"""Durable reactions and the per-type counters on ``posts.reactions``."""

from __future__ import annotations

from typing import List, Optional

from hearth.domain.models import Reaction
from hearth.infra.postgres import get_pool
from hearth.store.base import Repository

_COLUMNS = "id, post_id, type, username, avatar_color, profile_picture, user_to, created_at"

# $2 gains one, $3 (nullable) loses one; both read the pre-update document.
_MOVE_COUNTERS = """
UPDATE posts SET reactions = reactions
	|| CASE WHEN $2::text IS NULL THEN '{}'::jsonb
		ELSE jsonb_build_object($2::text, COALESCE((reactions->>$2)::int, 0) + 1) END
	|| CASE WHEN $3::text IS NULL THEN '{}'::jsonb
		ELSE jsonb_build_object($3::text, GREATEST(COALESCE((reactions->>$3)::int, 0) - 1, 0)) END
WHERE id=$1
"""


class ReactionRepository(Repository):
	async def save(self, reaction: Reaction) -> bool:
		"""Record the user's reaction, replacing an older one, and move the counters.

		A replayed job (same id, or older than what is stored) changes nothing.
		"""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				existing = await conn.fetchrow(
					"SELECT id, type, created_at FROM reactions WHERE post_id=$1 AND username=$2 FOR UPDATE",
					reaction.post_id,
					reaction.username,
				)
				if existing is not None and (
					existing["id"] == reaction.id or existing["created_at"] > reaction.created_at
				):
					return False
				if existing is not None:
					await conn.execute("DELETE FROM reactions WHERE id=$1", existing["id"])
				await conn.execute(
					f"INSERT INTO reactions ({_COLUMNS}) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)",
					reaction.id,
					reaction.post_id,
					reaction.type,
					reaction.username,
					reaction.avatar_color,
					reaction.profile_picture,
					reaction.user_to,
					reaction.created_at,
				)
				old_type = existing["type"] if existing is not None else None
				if old_type != reaction.type:
					await conn.execute(_MOVE_COUNTERS, reaction.post_id, reaction.type, old_type)
		return True

	async def remove(self, post_id: str, username: str) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"DELETE FROM reactions WHERE post_id=$1 AND username=$2 RETURNING type",
					post_id,
					username,
				)
				if record is None:
					return False
				await conn.execute(_MOVE_COUNTERS, post_id, None, record["type"])
		return True

	async def list_for_post(self, post_id: str) -> List[Reaction]:
		records = await self._fetch(
			f"SELECT {_COLUMNS} FROM reactions WHERE post_id=$1 ORDER BY created_at DESC",
			post_id,
		)
		return [Reaction.from_record(record) for record in records]

	async def get_for_user(self, post_id: str, username: str) -> Optional[Reaction]:
		record = await self._fetchrow(
			f"SELECT {_COLUMNS} FROM reactions WHERE post_id=$1 AND username=$2",
			post_id,
			username,
		)
		return Reaction.from_record(record) if record else None

	async def list_by_username(self, username: str) -> List[Reaction]:
		records = await self._fetch(
			f"SELECT {_COLUMNS} FROM reactions WHERE username=$1 ORDER BY created_at DESC",
			username,
		)
		return [Reaction.from_record(record) for record in records]
