"""Follow edges as a pair of id lists with counters on both user hashes."""

from __future__ import annotations

from typing import List, Sequence

from hearth.cache.base import BaseCache
from hearth.cache.user import user_key


def followers_key(user_id: str) -> str:
	return f"followers:{user_id}"


def following_key(user_id: str) -> str:
	return f"following:{user_id}"


class FollowerCache(BaseCache):
	entity = "follower"

	async def add_follow(self, follower_id: str, followee_id: str, *, seed: Sequence[str] = ()) -> bool:
		"""Create the edge; returns False and changes nothing when it already exists.

		``seed`` is the durable following list. It is written first when the
		cached list is absent, so edges the cache lost still count as present.
		"""
		source = following_key(follower_id)

		async def body(pipe):
			current: List[str] = await pipe.lrange(source, 0, -1)
			seeding = not current and bool(seed)
			if seeding:
				current = list(seed)
			if followee_id in current:
				if seeding:
					pipe.multi()
					pipe.rpush(source, *current)
					return False, True
				return False, False
			pipe.multi()
			if seeding:
				pipe.rpush(source, *current)
			pipe.lpush(source, followee_id)
			pipe.lpush(followers_key(followee_id), follower_id)
			pipe.hincrby(user_key(follower_id), "following_count", 1)
			pipe.hincrby(user_key(followee_id), "followers_count", 1)
			return True, True

		return bool(await self._optimistic([source], body, op="follow"))

	async def remove_follow(self, follower_id: str, followee_id: str, *, seed: Sequence[str] = ()) -> bool:
		"""Drop the edge; returns False and changes nothing when it was absent.

		``seed`` plays the same role as in ``add_follow``.
		"""
		source = following_key(follower_id)

		async def body(pipe):
			current: List[str] = await pipe.lrange(source, 0, -1)
			seeding = not current and bool(seed)
			if seeding:
				current = list(seed)
			if followee_id not in current:
				if seeding:
					pipe.multi()
					pipe.rpush(source, *current)
					return False, True
				return False, False
			pipe.multi()
			if seeding:
				pipe.rpush(source, *current)
			pipe.lrem(source, 1, followee_id)
			pipe.lrem(followers_key(followee_id), 1, follower_id)
			pipe.hincrby(user_key(follower_id), "following_count", -1)
			pipe.hincrby(user_key(followee_id), "followers_count", -1)
			return True, True

		return bool(await self._optimistic([source], body, op="unfollow"))

	async def get_followers(self, user_id: str) -> List[str]:
		async with self._guard("range"):
			return list(await self.redis.lrange(followers_key(user_id), 0, -1))

	async def get_following(self, user_id: str) -> List[str]:
		async with self._guard("range"):
			return list(await self.redis.lrange(following_key(user_id), 0, -1))
