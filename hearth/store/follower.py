"""Durable follow edges with their counters."""

from __future__ import annotations

from typing import List

from hearth.infra.postgres import get_pool
from hearth.store.base import Repository


class FollowerRepository(Repository):
	async def add(self, follower_id: str, followee_id: str) -> bool:
		"""Insert the edge; counters move only when the edge is new."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"""
					INSERT INTO followers (follower_id, followee_id)
					VALUES ($1, $2)
					ON CONFLICT (follower_id, followee_id) DO NOTHING
					RETURNING follower_id
					""",
					follower_id,
					followee_id,
				)
				if record is None:
					return False
				await conn.execute("UPDATE users SET following_count = following_count + 1 WHERE id=$1", follower_id)
				await conn.execute("UPDATE users SET followers_count = followers_count + 1 WHERE id=$1", followee_id)
		return True

	async def remove(self, follower_id: str, followee_id: str) -> bool:
		"""Delete the edge; counters move only when a row was removed."""
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				record = await conn.fetchrow(
					"DELETE FROM followers WHERE follower_id=$1 AND followee_id=$2 RETURNING follower_id",
					follower_id,
					followee_id,
				)
				if record is None:
					return False
				await conn.execute(
					"UPDATE users SET following_count = GREATEST(following_count - 1, 0) WHERE id=$1",
					follower_id,
				)
				await conn.execute(
					"UPDATE users SET followers_count = GREATEST(followers_count - 1, 0) WHERE id=$1",
					followee_id,
				)
		return True

	async def list_followers(self, user_id: str) -> List[str]:
		records = await self._fetch(
			"SELECT follower_id FROM followers WHERE followee_id=$1 ORDER BY created_at DESC",
			user_id,
		)
		return [record["follower_id"] for record in records]

	async def list_following(self, user_id: str) -> List[str]:
		records = await self._fetch(
			"SELECT followee_id FROM followers WHERE follower_id=$1 ORDER BY created_at DESC",
			user_id,
		)
		return [record["followee_id"] for record in records]
