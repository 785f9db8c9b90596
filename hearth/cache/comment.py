"""Comment lists, newest first, one list per post."""

from __future__ import annotations

from typing import List, Optional

from hearth.cache.base import BaseCache
from hearth.cache.codec import dump_json, load_json
from hearth.cache.post import comments_key, post_key
from hearth.domain.models import Comment


class CommentCache(BaseCache):
	entity = "comment"

	async def save_comment(self, comment: Comment) -> None:
		"""Prepend the comment and bump the post's ``comments_count`` in one transaction."""
		async with self._guard("save"):
			async with self.redis.pipeline(transaction=True) as pipe:
				pipe.lpush(comments_key(comment.post_id), dump_json(comment))
				pipe.hincrby(post_key(comment.post_id), "comments_count", 1)
				await pipe.execute()

	async def get_comments(self, post_id: str) -> List[Comment]:
		async with self._guard("range"):
			raw = await self.redis.lrange(comments_key(post_id), 0, -1)
		return [load_json(Comment, item) for item in raw]

	async def get_comment_names(self, post_id: str) -> dict[str, object]:
		"""Comment count plus the distinct commenter names, newest first."""
		async with self._guard("names"):
			async with self.redis.pipeline(transaction=False) as pipe:
				pipe.llen(comments_key(post_id))
				pipe.lrange(comments_key(post_id), 0, -1)
				count, raw = await pipe.execute()
		names: List[str] = []
		for item in raw:
			username = load_json(Comment, item).username
			if username not in names:
				names.append(username)
		return {"count": int(count), "names": names}

	async def get_comment(self, post_id: str, comment_id: str) -> Optional[Comment]:
		for comment in await self.get_comments(post_id):
			if comment.id == comment_id:
				return comment
		return None
