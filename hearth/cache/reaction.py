"""Reaction lists per post plus the per-type counters on the post hash.

A user holds at most one reaction per post. Replacing it swaps the list
entry and moves one unit between two counters inside a single WATCHed
transaction, so a reader never sees the old and new reaction together.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from hearth.cache.base import BaseCache
from hearth.cache.codec import dump_json, load_json
from hearth.cache.post import post_key, reaction_field, reactions_key
from hearth.domain.models import REACTION_TYPES, Reaction

_LOG = logging.getLogger(__name__)


def _find(items: List[str], username: str) -> Optional[str]:
	for item in items:
		if load_json(Reaction, item).username == username:
			return item
	return None


class ReactionCache(BaseCache):
	entity = "reaction"

	async def add_reaction(self, reaction: Reaction, previous_type: str | None = None) -> None:
		"""Record ``reaction``, replacing the user's earlier reaction on the post if any.

		``previous_type`` is the type the client believes it is replacing. The
		stored entry wins when they disagree, so counters always move off the
		type that is actually recorded.
		"""
		if reaction.type not in REACTION_TYPES:
			raise ValueError(f"unknown reaction type {reaction.type}")
		list_key = reactions_key(reaction.post_id)
		hash_key = post_key(reaction.post_id)

		async def body(pipe):
			items: List[str] = await pipe.lrange(list_key, 0, -1)
			existing = _find(items, reaction.username)
			old_type = load_json(Reaction, existing).type if existing else None
			pipe.multi()
			if existing is not None:
				pipe.lrem(list_key, 1, existing)
			pipe.lpush(list_key, dump_json(reaction))
			if old_type != reaction.type:
				if old_type:
					pipe.hincrby(hash_key, reaction_field(old_type), -1)
				pipe.hincrby(hash_key, reaction_field(reaction.type), 1)
			return old_type, True

		old_type = await self._optimistic([list_key], body, op="add")
		if previous_type and old_type and previous_type != old_type:
			_LOG.info(
				"reaction.previous_mismatch",
				extra={"post_id": reaction.post_id, "claimed": previous_type, "stored": old_type},
			)

	async def remove_reaction(self, post_id: str, username: str, previous_type: str | None = None) -> bool:
		"""Drop the user's reaction and decrement its counter; False when there was none."""
		list_key = reactions_key(post_id)
		hash_key = post_key(post_id)

		async def body(pipe):
			items: List[str] = await pipe.lrange(list_key, 0, -1)
			existing = _find(items, username)
			if existing is None:
				return False, False
			old_type = load_json(Reaction, existing).type
			pipe.multi()
			pipe.lrem(list_key, 1, existing)
			pipe.hincrby(hash_key, reaction_field(old_type), -1)
			return True, True

		return bool(await self._optimistic([list_key], body, op="remove"))

	async def get_reactions(self, post_id: str) -> tuple[List[Reaction], int]:
		async with self._guard("range"):
			raw = await self.redis.lrange(reactions_key(post_id), 0, -1)
		reactions = [load_json(Reaction, item) for item in raw]
		return reactions, len(reactions)

	async def get_reactions_by_type(self, post_id: str) -> dict[str, int]:
		async with self._guard("counts"):
			values = await self.redis.hmget(post_key(post_id), [reaction_field(name) for name in REACTION_TYPES])
		return {name: int(value or 0) for name, value in zip(REACTION_TYPES, values)}

	async def get_user_reaction(self, post_id: str, username: str) -> Optional[Reaction]:
		reactions, _ = await self.get_reactions(post_id)
		for reaction in reactions:
			if reaction.username == username:
				return reaction
		return None
