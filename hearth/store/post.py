"""Durable posts."""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from hearth.domain.models import Post
from hearth.infra.postgres import get_pool
from hearth.store.base import Repository, set_clause

_COLUMNS = (
	"id, user_id, username, email, avatar_color, profile_picture, post, bg_color, feelings, privacy, "
	"gif_url, img_id, img_version, comments_count, reactions, created_at"
)

_UPDATABLE = frozenset(
	{"post", "bg_color", "feelings", "privacy", "gif_url", "img_id", "img_version", "profile_picture"}
)

_IMAGE_FILTER = "((img_id <> '' AND img_version <> '') OR gif_url <> '')"


class PostRepository(Repository):
	async def create(self, post: Post) -> bool:
		"""Insert the post and bump the author's ``posts_count`` only on first insert."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					f"""
					INSERT INTO posts ({_COLUMNS})
					VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16)
					ON CONFLICT (id) DO NOTHING
					RETURNING id
					""",
					post.id,
					post.user_id,
					post.username,
					post.email,
					post.avatar_color,
					post.profile_picture,
					post.post,
					post.bg_color,
					post.feelings,
					post.privacy,
					post.gif_url,
					post.img_id,
					post.img_version,
					post.comments_count,
					dict(post.reactions),
					post.created_at,
				)
				if record is None:
					return False
				await conn.execute("UPDATE users SET posts_count = posts_count + 1 WHERE id=$1", post.user_id)
		return True

	async def get(self, post_id: str) -> Optional[Post]:
		record = await self._fetchrow(f"SELECT {_COLUMNS} FROM posts WHERE id=$1", post_id)
		return Post.from_record(record) if record else None

	async def list_posts(
		self,
		skip: int,
		limit: int,
		*,
		user_id: str | None = None,
		with_images: bool = False,
	) -> List[Post]:
		where = ["($1::text IS NULL OR user_id = $1)"]
		if with_images:
			where.append(_IMAGE_FILTER)
		records = await self._fetch(
			f"""
			SELECT {_COLUMNS} FROM posts
			WHERE {' AND '.join(where)}
			ORDER BY created_at DESC
			OFFSET $2 LIMIT $3
			""",
			user_id,
			skip,
			limit,
		)
		return [Post.from_record(record) for record in records]

	async def count_posts(self, *, user_id: str | None = None, with_images: bool = False) -> int:
		where = ["($1::text IS NULL OR user_id = $1)"]
		if with_images:
			where.append(_IMAGE_FILTER)
		value = await self._fetchval(f"SELECT count(*) FROM posts WHERE {' AND '.join(where)}", user_id)
		return int(value or 0)

	async def update(self, post_id: str, changes: Mapping[str, Any]) -> None:
		assignments, values = set_clause(changes, _UPDATABLE)
		if not assignments:
			return
		await self._execute(f"UPDATE posts SET {assignments} WHERE id=$1", post_id, *values)

	async def delete(self, post_id: str, author_id: str) -> bool:
		"""Delete the post (comments and reactions cascade); decrement the count once."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow("DELETE FROM posts WHERE id=$1 RETURNING user_id", post_id)
				if record is None:
					return False
				await conn.execute(
					"UPDATE users SET posts_count = GREATEST(posts_count - 1, 0) WHERE id=$1",
					record["user_id"] or author_id,
				)
		return True
