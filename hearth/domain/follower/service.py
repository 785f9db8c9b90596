"""Follow edges and blocking."""

from __future__ import annotations

import logging
from typing import Iterable, List

from hearth.cache.follower import FollowerCache
from hearth.cache.user import UserCache
from hearth.domain.exceptions import NotFoundError, ValidationError
from hearth.domain.models import BlockAction, User
from hearth.domain.readers import read_user
from hearth.infra.auth import AuthenticatedUser
from hearth.obs import metrics as obs_metrics
from hearth.queue.registry import QueueSet
from hearth.sockets import namespaces
from hearth.sockets.broadcast import Broadcaster
from hearth.store.follower import FollowerRepository
from hearth.store.user import UserRepository

_LOG = logging.getLogger(__name__)


class FollowerService:
	def __init__(
		self,
		*,
		follower_cache: FollowerCache,
		follower_repository: FollowerRepository,
		user_cache: UserCache,
		user_repository: UserRepository,
		queues: QueueSet,
		broadcaster: Broadcaster,
	) -> None:
		self.cache = follower_cache
		self.repo = follower_repository
		self.user_cache = user_cache
		self.user_repo = user_repository
		self.queues = queues
		self.broadcaster = broadcaster

	async def _pair(self, principal: AuthenticatedUser, target_id: str, *, error: str) -> tuple[User, User]:
		if target_id == principal.id:
			raise ValidationError(error)
		# both hashes must be cached before counters move on them
		me = await read_user(self.user_cache, self.user_repo, principal.id)
		target = await read_user(self.user_cache, self.user_repo, target_id)
		if me is None or target is None:
			raise NotFoundError("user_not_found")
		return me, target

	async def follow(self, principal: AuthenticatedUser, followee_id: str) -> bool:
		"""Follow ``followee_id``; a repeated follow is a no-op and returns False."""
		me, followee = await self._pair(principal, followee_id, error="cannot_follow_self")
		seed = await self._durable_following(me)
		if not await self.cache.add_follow(principal.id, followee_id, seed=seed):
			_LOG.info("follower.already_following", extra={"followee_id": followee_id})
			return False
		await self.broadcaster.emit(
			namespaces.FOLLOWERS,
			"add follower",
			{"follower": me.model_dump(mode="json"), "followee_id": followee_id},
		)
		await self.queues.enqueue(
			"follower",
			"add_follower_to_db",
			{
				"follower_id": principal.id,
				"followee_id": followee_id,
				"username": principal.username,
				"avatar_color": principal.avatar_color,
				"profile_picture": me.profile_picture,
			},
		)
		return True

	async def unfollow(self, principal: AuthenticatedUser, followee_id: str) -> bool:
		me, _ = await self._pair(principal, followee_id, error="cannot_follow_self")
		seed = await self._durable_following(me)
		if not await self.cache.remove_follow(principal.id, followee_id, seed=seed):
			return False
		await self.broadcaster.emit(
			namespaces.FOLLOWERS,
			"remove follower",
			{"follower_id": principal.id, "followee_id": followee_id},
		)
		await self.queues.enqueue(
			"follower",
			"remove_follower_from_db",
			{"follower_id": principal.id, "followee_id": followee_id},
		)
		return True

	async def _durable_following(self, me: User) -> List[str]:
		"""Durable edges for a following list that was evicted from the cache.

		An empty list with a zero ``following_count`` is really empty and is not
		seeded, so a pending unfollow is never undone by a stale durable row.
		"""
		if me.following_count <= 0 or await self.cache.get_following(me.id):
			return []
		obs_metrics.cold_read("following", "seed")
		return await self.repo.list_following(me.id)

	async def _profiles(self, ids: Iterable[str]) -> List[User]:
		users: List[User] = []
		for user_id in ids:
			user = await read_user(self.user_cache, self.user_repo, user_id)
			if user is not None:
				users.append(user)
		return users

	async def following(self, principal: AuthenticatedUser) -> List[User]:
		ids = await self.cache.get_following(principal.id)
		if not ids:
			obs_metrics.cold_read("following", "fallback")
			ids = await self.repo.list_following(principal.id)
		return await self._profiles(ids)

	async def followers(self, user_id: str) -> List[User]:
		ids = await self.cache.get_followers(user_id)
		if not ids:
			obs_metrics.cold_read("followers", "fallback")
			ids = await self.repo.list_followers(user_id)
		return await self._profiles(ids)

	async def block(self, principal: AuthenticatedUser, target_id: str) -> None:
		await self._set_blocked(principal, target_id, BlockAction.BLOCK)

	async def unblock(self, principal: AuthenticatedUser, target_id: str) -> None:
		await self._set_blocked(principal, target_id, BlockAction.UNBLOCK)

	async def _set_blocked(self, principal: AuthenticatedUser, target_id: str, action: BlockAction) -> None:
		await self._pair(principal, target_id, error="cannot_block_self")
		await self.user_cache.update_blocked(principal.id, "blocked", target_id, action)
		await self.user_cache.update_blocked(target_id, "blocked_by", principal.id, action)
		await self.broadcaster.emit(
			namespaces.USERS,
			"blocked user",
			{"blocker_id": principal.id, "blocked_id": target_id, "action": action.value},
		)
		job_type = "add_blocked_user_to_db" if action is BlockAction.BLOCK else "remove_blocked_user_from_db"
		await self.queues.enqueue("blocked", job_type, {"user_id": principal.id, "target_id": target_id})
