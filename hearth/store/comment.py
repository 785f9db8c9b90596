"""Durable comments."""

from __future__ import annotations

from typing import List, Optional

from hearth.domain.models import Comment
from hearth.infra.postgres import get_pool
from hearth.store.base import Repository

_COLUMNS = "id, post_id, user_to, username, avatar_color, profile_picture, comment, created_at"


class CommentRepository(Repository):
	async def create(self, comment: Comment) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					f"""
					INSERT INTO comments ({_COLUMNS})
					VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
					ON CONFLICT (id) DO NOTHING
					RETURNING id
					""",
					comment.id,
					comment.post_id,
					comment.user_to,
					comment.username,
					comment.avatar_color,
					comment.profile_picture,
					comment.comment,
					comment.created_at,
				)
				if record is None:
					return False
				await conn.execute(
					"UPDATE posts SET comments_count = comments_count + 1 WHERE id=$1",
					comment.post_id,
				)
		return True

	async def list_for_post(self, post_id: str) -> List[Comment]:
		records = await self._fetch(
			f"SELECT {_COLUMNS} FROM comments WHERE post_id=$1 ORDER BY created_at DESC",
			post_id,
		)
		return [Comment.from_record(record) for record in records]

	async def names_for_post(self, post_id: str) -> dict[str, object]:
		records = await self._fetch(
			"""
			SELECT username, max(created_at) AS latest, count(*) AS n
			FROM comments WHERE post_id=$1
			GROUP BY username ORDER BY latest DESC
			""",
			post_id,
		)
		return {
			"count": sum(int(record["n"]) for record in records),
			"names": [record["username"] for record in records],
		}

	async def get(self, comment_id: str) -> Optional[Comment]:
		record = await self._fetchrow(f"SELECT {_COLUMNS} FROM comments WHERE id=$1", comment_id)
		return Comment.from_record(record) if record else None
