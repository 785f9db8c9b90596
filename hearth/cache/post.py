"""Post cache: one hash per post plus the ``posts`` sorted set.

Posts are scored by their author's ``u_id`` so a user's posts can be read
back with a single score range; ties fall back to member order, and post
ids are ULIDs, so a reverse range lists each author's newest posts first.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

from hearth.cache.base import BaseCache
from hearth.cache.codec import POST_CODEC
from hearth.cache.user import user_key
from hearth.domain.models import REACTION_TYPES, Post

POSTS_ZSET = "posts"

_MUTABLE_FIELDS = frozenset(
	{
		"post",
		"bg_color",
		"feelings",
		"privacy",
		"gif_url",
		"img_id",
		"img_version",
		"profile_picture",
	}
)


def post_key(post_id: str) -> str:
	return f"posts:{post_id}"


def comments_key(post_id: str) -> str:
	return f"comments:{post_id}"


def reactions_key(post_id: str) -> str:
	return f"reactions:{post_id}"


def miss_key(post_id: str) -> str:
	return f"miss:posts:{post_id}"


def reaction_field(reaction_type: str) -> str:
	return POST_CODEC.counter_field("reactions", reaction_type)


_COUNTER_FIELDS = frozenset({"comments_count", *(reaction_field(name) for name in REACTION_TYPES)})


class PostCache(BaseCache):
	entity = "post"

	async def save_post(self, post: Post, author_u_id: str) -> None:
		"""Store the post, index it and bump the author's ``posts_count`` atomically."""
		async with self._guard("save"):
			async with self.redis.pipeline(transaction=True) as pipe:
				pipe.zadd(POSTS_ZSET, {post.id: int(author_u_id)})
				pipe.hset(post_key(post.id), mapping=POST_CODEC.encode(post))
				pipe.hincrby(user_key(post.user_id), "posts_count", 1)
				pipe.delete(miss_key(post.id))
				await pipe.execute()

	async def get_post(self, post_id: str) -> Optional[Post]:
		async with self._guard("get"):
			data = await self.redis.hgetall(post_key(post_id))
		# counters may land on a hash that was never fully written
		if not data or "id" not in data:
			return None
		return POST_CODEC.decode(data)

	async def _load(self, ids: List[str]) -> List[Post]:
		if not ids:
			return []
		async with self.redis.pipeline(transaction=False) as pipe:
			for post_id in ids:
				pipe.hgetall(post_key(post_id))
			replies = await pipe.execute()
		return [POST_CODEC.decode(data) for data in replies if data and "id" in data]

	async def get_posts(self, start: int, end: int) -> List[Post]:
		async with self._guard("range"):
			ids = await self.redis.zrevrange(POSTS_ZSET, start, end)
			return await self._load(ids)

	async def get_posts_with_images(self, start: int, end: int) -> List[Post]:
		posts = await self.get_posts(start, end)
		return [post for post in posts if post.has_image]

	async def get_user_posts(self, u_id: str) -> List[Post]:
		score = int(u_id)
		async with self._guard("range"):
			ids = await self.redis.zrevrangebyscore(POSTS_ZSET, score, score)
			return await self._load(ids)

	async def get_total_posts(self) -> int:
		async with self._guard("count"):
			return int(await self.redis.zcard(POSTS_ZSET))

	async def get_total_user_posts(self, u_id: str) -> int:
		score = int(u_id)
		async with self._guard("count"):
			return int(await self.redis.zcount(POSTS_ZSET, score, score))

	async def update_post(self, post_id: str, changes: Mapping[str, Any]) -> Optional[Post]:
		"""Partial update of editable fields; None when the post is not cached."""
		mapping: dict[str, str] = {}
		for field, value in changes.items():
			if field not in _MUTABLE_FIELDS:
				raise ValueError(f"{field} is not editable")
			mapping.update(POST_CODEC.encode_field(field, value))
		key = post_key(post_id)
		async with self._guard("update"):
			if not await self.redis.exists(key):
				return None
			if mapping:
				await self.redis.hset(key, mapping=mapping)
		return await self.get_post(post_id)

	async def increment_counter(self, post_id: str, field: str, delta: int) -> int:
		if field not in _COUNTER_FIELDS:
			raise ValueError(f"{field} is not a post counter")
		async with self._guard("incr"):
			return int(await self.redis.hincrby(post_key(post_id), field, delta))

	async def delete_post(self, post_id: str, author_id: str) -> bool:
		"""Drop the post with its comment and reaction lists.

		The author's ``posts_count`` is decremented only when the post hash was
		actually present, so a repeated delete leaves the counter alone. A
		permanent miss marker is left behind so a read that reaches the durable
		store before the queued delete runs cannot bring the post back.
		"""
		key = post_key(post_id)

		async def body(pipe):
			existed = bool(await pipe.exists(key))
			pipe.multi()
			pipe.zrem(POSTS_ZSET, post_id)
			pipe.delete(key, comments_key(post_id), reactions_key(post_id))
			pipe.set(miss_key(post_id), "1")
			if existed:
				pipe.hincrby(user_key(author_id), "posts_count", -1)
			return existed, True

		return bool(await self._optimistic([key], body, op="delete"))

	async def is_missing(self, post_id: str) -> bool:
		async with self._guard("miss"):
			return bool(await self.redis.exists(miss_key(post_id)))

	async def mark_missing(self, post_id: str, ttl_seconds: int) -> None:
		async with self._guard("miss"):
			await self.redis.set(miss_key(post_id), "1", ex=ttl_seconds)

	async def cache_post(self, post: Post, author_u_id: str) -> bool:
		"""Repopulate a post read from the durable store.

		Nothing is written when the post is already cached or carries a miss
		marker. Counters incremented on a partial hash while the post was
		uncached hold deltas the durable row may not include yet; they are added
		to the durable values. Returns True when the hash was written.
		"""
		key = post_key(post.id)
		marker = miss_key(post.id)

		async def body(pipe):
			if await pipe.exists(marker):
				return False, False
			current = await pipe.hgetall(key)
			if current and "id" in current:
				return False, False
			mapping = POST_CODEC.encode(post)
			for field, delta in current.items():
				if field in _COUNTER_FIELDS:
					mapping[field] = str(int(mapping.get(field) or 0) + int(delta))
			pipe.multi()
			pipe.zadd(POSTS_ZSET, {post.id: int(author_u_id)})
			pipe.hset(key, mapping=mapping)
			return True, True

		return bool(await self._optimistic([key, marker], body, op="populate"))
