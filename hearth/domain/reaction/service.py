"""Post reactions.

A user holds at most one reaction per post; adding a new type replaces the
old one and moves the counters in the same cache transaction.
"""

from __future__ import annotations

from typing import Any, Dict, List

from hearth.cache.reaction import ReactionCache
from hearth.domain.exceptions import NotFoundError, ValidationError
from hearth.domain.models import REACTION_TYPES, Reaction
from hearth.domain.reaction.schemas import ReactionRequest
from hearth.infra.auth import AuthenticatedUser
from hearth.infra.ids import new_id
from hearth.obs import metrics as obs_metrics
from hearth.queue.registry import QueueSet
from hearth.sockets import namespaces
from hearth.sockets.broadcast import Broadcaster
from hearth.store.reaction import ReactionRepository


def _check_type(reaction_type: str | None) -> None:
	if reaction_type is not None and reaction_type not in REACTION_TYPES:
		raise ValidationError("invalid_reaction_type")


class ReactionService:
	def __init__(
		self,
		*,
		reaction_cache: ReactionCache,
		reaction_repository: ReactionRepository,
		queues: QueueSet,
		broadcaster: Broadcaster,
	) -> None:
		self.cache = reaction_cache
		self.repo = reaction_repository
		self.queues = queues
		self.broadcaster = broadcaster

	async def add_reaction(self, principal: AuthenticatedUser, payload: ReactionRequest) -> Reaction:
		_check_type(payload.type)
		_check_type(payload.previous_reaction)
		reaction = Reaction(
			id=new_id(),
			post_id=payload.post_id,
			type=payload.type,
			username=principal.username,
			avatar_color=principal.avatar_color,
			profile_picture=payload.profile_picture,
			user_to=payload.user_to,
		)
		await self.cache.add_reaction(reaction, payload.previous_reaction)
		document = reaction.model_dump(mode="json")
		await self.broadcaster.emit(namespaces.POSTS, "update reaction", document)
		await self.queues.enqueue(
			"reaction",
			"add_reaction_to_db",
			{"reaction": document, "previous_type": payload.previous_reaction, "user_from": principal.id},
		)
		return reaction

	async def remove_reaction(self, principal: AuthenticatedUser, post_id: str, previous_reaction: str) -> bool:
		_check_type(previous_reaction)
		removed = await self.cache.remove_reaction(post_id, principal.username, previous_reaction)
		await self.broadcaster.emit(
			namespaces.POSTS,
			"update reaction",
			{"post_id": post_id, "username": principal.username, "type": None},
		)
		await self.queues.enqueue(
			"reaction",
			"remove_reaction_from_db",
			{"post_id": post_id, "username": principal.username},
		)
		return removed

	async def get_reactions(self, post_id: str) -> Dict[str, Any]:
		reactions, count = await self.cache.get_reactions(post_id)
		if not count:
			obs_metrics.cold_read("reactions", "fallback")
			reactions = await self.repo.list_for_post(post_id)
			count = len(reactions)
		return {"reactions": reactions, "count": count}

	async def get_user_reaction(self, post_id: str, username: str) -> Reaction:
		reaction = await self.cache.get_user_reaction(post_id, username)
		if reaction is None:
			obs_metrics.cold_read("reaction", "fallback")
			reaction = await self.repo.get_for_user(post_id, username)
		if reaction is None:
			raise NotFoundError("reaction_not_found")
		return reaction

	async def get_reactions_by_username(self, username: str) -> List[Reaction]:
		return await self.repo.list_by_username(username)
