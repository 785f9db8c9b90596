"""User profile cache: one hash per user plus the ``users`` sorted set."""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping, Optional

from hearth.cache.base import BaseCache
from hearth.cache.codec import USER_CODEC
from hearth.domain.models import BlockAction, User


USERS_ZSET = "users"

# Fields that only change through increment_counter.
COUNTER_FIELDS = frozenset({"posts_count", "followers_count", "following_count"})


def user_key(user_id: str) -> str:
	return f"users:{user_id}"


def miss_key(user_id: str) -> str:
	return f"miss:users:{user_id}"


class UserCache(BaseCache):
	entity = "user"

	async def save_user(self, user: User) -> None:
		async with self._guard("save"):
			async with self.redis.pipeline(transaction=True) as pipe:
				pipe.zadd(USERS_ZSET, {user.id: int(user.u_id)})
				pipe.hset(user_key(user.id), mapping=USER_CODEC.encode(user))
				pipe.delete(miss_key(user.id))
				await pipe.execute()

	async def get_user(self, user_id: str) -> Optional[User]:
		async with self._guard("get"):
			data = await self.redis.hgetall(user_key(user_id))
		if not data or "id" not in data:
			return None
		return USER_CODEC.decode(data)

	async def get_users(self, start: int, end: int, exclude_user_id: str | None = None) -> List[User]:
		"""Users ranked by ``u_id`` descending, indices ``start .. end`` inclusive.

		``exclude_user_id`` is dropped after the range is read, so a page that
		contained it comes back one short.
		"""
		async with self._guard("range"):
			ids: List[str] = await self.redis.zrevrange(USERS_ZSET, start, end)
			wanted = [user_id for user_id in ids if user_id != exclude_user_id]
			if not wanted:
				return []
			async with self.redis.pipeline(transaction=False) as pipe:
				for user_id in wanted:
					pipe.hgetall(user_key(user_id))
				replies = await pipe.execute()
		return [USER_CODEC.decode(data) for data in replies if data and "id" in data]

	async def get_total_users(self) -> int:
		async with self._guard("count"):
			return int(await self.redis.zcard(USERS_ZSET))

	async def get_random_users(self, user_id: str, followee_ids: Iterable[str], *, sample: int = 10) -> List[User]:
		"""Sample the user set, dropping the requester and anyone already followed."""
		skip = set(followee_ids)
		skip.add(user_id)
		async with self._guard("random"):
			ids: List[str] = await self.redis.zrandmember(USERS_ZSET, sample) or []
			wanted = [candidate for candidate in ids if candidate not in skip]
			if not wanted:
				return []
			async with self.redis.pipeline(transaction=False) as pipe:
				for candidate in wanted:
					pipe.hgetall(user_key(candidate))
				replies = await pipe.execute()
		return [USER_CODEC.decode(data) for data in replies if data and "id" in data]

	async def update_field(self, user_id: str, field: str, value: Any) -> Optional[User]:
		return await self.update_fields(user_id, {field: value})

	async def update_fields(self, user_id: str, changes: Mapping[str, Any]) -> Optional[User]:
		"""Partial update; returns the re-read record, or None when the user is not cached."""
		mapping: dict[str, str] = {}
		for field, value in changes.items():
			if field in COUNTER_FIELDS or field in ("id", "u_id"):
				raise ValueError(f"{field} cannot be set directly")
			mapping.update(USER_CODEC.encode_field(field, value))
		key = user_key(user_id)
		async with self._guard("update"):
			if not await self.redis.exists(key):
				return None
			await self.redis.hset(key, mapping=mapping)
		return await self.get_user(user_id)

	async def increment_counter(self, user_id: str, field: str, delta: int) -> int:
		if field not in COUNTER_FIELDS:
			raise ValueError(f"{field} is not a counter")
		async with self._guard("incr"):
			return int(await self.redis.hincrby(user_key(user_id), field, delta))

	async def update_blocked(self, user_id: str, field: str, target_id: str, action: BlockAction) -> None:
		"""Add or remove ``target_id`` from the ``blocked``/``blocked_by`` list of ``user_id``."""
		if field not in ("blocked", "blocked_by"):
			raise ValueError(f"{field} is not a block list")
		key = user_key(user_id)

		async def body(pipe):
			raw = await pipe.hget(key, field)
			current: List[str] = json.loads(raw) if raw else []
			if action is BlockAction.BLOCK and target_id not in current:
				current.append(target_id)
			elif action is BlockAction.UNBLOCK and target_id in current:
				current.remove(target_id)
			pipe.multi()
			pipe.hset(key, field, json.dumps(current))
			return None, True

		await self._optimistic([key], body, op="block")

	async def is_missing(self, user_id: str) -> bool:
		async with self._guard("miss"):
			return bool(await self.redis.exists(miss_key(user_id)))

	async def mark_missing(self, user_id: str, ttl_seconds: int) -> None:
		async with self._guard("miss"):
			await self.redis.set(miss_key(user_id), "1", ex=ttl_seconds)
