"""User listing, profiles, suggestions and profile edits."""

from __future__ import annotations

from typing import Any, Dict, List

from hearth.cache.base import page_bounds
from hearth.cache.follower import FollowerCache
from hearth.cache.post import PostCache
from hearth.cache.user import UserCache
from hearth.domain.exceptions import NotFoundError
from hearth.domain.models import Post, User
from hearth.domain.readers import read_user
from hearth.domain.user.schemas import BasicInfoRequest, NotificationSettingsRequest, SocialLinksRequest
from hearth.infra.auth import AuthenticatedUser
from hearth.obs import metrics as obs_metrics
from hearth.queue.registry import QueueSet
from hearth.settings import settings
from hearth.sockets import namespaces
from hearth.sockets.broadcast import Broadcaster
from hearth.store.follower import FollowerRepository
from hearth.store.post import PostRepository
from hearth.store.user import UserRepository


class UserService:
	def __init__(
		self,
		*,
		user_cache: UserCache,
		user_repository: UserRepository,
		follower_cache: FollowerCache,
		follower_repository: FollowerRepository,
		post_cache: PostCache,
		post_repository: PostRepository,
		queues: QueueSet,
		broadcaster: Broadcaster,
	) -> None:
		self.cache = user_cache
		self.repo = user_repository
		self.follower_cache = follower_cache
		self.follower_repo = follower_repository
		self.post_cache = post_cache
		self.post_repo = post_repository
		self.queues = queues
		self.broadcaster = broadcaster

	async def list_users(self, principal: AuthenticatedUser, page: int) -> Dict[str, Any]:
		"""One page of users (requester excluded), the total and who the requester follows.

		The page and the total always come from the same store. The requester is
		removed after the range is read, so their own page holds one user fewer.
		"""
		size = settings.users_page_size
		skip, limit = page_bounds(page, size)
		users = await self.cache.get_users(skip, limit - 1, exclude_user_id=principal.id)
		if users:
			total = await self.cache.get_total_users()
		else:
			obs_metrics.cold_read("user_page", "fallback")
			users = await self.repo.list_users(principal.id, skip, size)
			total = await self.repo.count_users()
		following = await self.following_ids(principal.id)
		return {"users": users, "total_users": total, "following": following}

	async def following_ids(self, user_id: str) -> List[str]:
		ids = await self.follower_cache.get_following(user_id)
		if ids:
			return ids
		return await self.follower_repo.list_following(user_id)

	async def profile(self, user_id: str) -> User:
		user = await read_user(self.cache, self.repo, user_id)
		if user is None:
			raise NotFoundError("user_not_found")
		return user

	async def profile_and_posts(self, user_id: str, username: str, u_id: str) -> Dict[str, Any]:
		user = await self.profile(user_id)
		if user.username.lower() != username.lower() or user.u_id != u_id:
			raise NotFoundError("user_not_found")
		posts: List[Post] = await self.post_cache.get_user_posts(u_id)
		if not posts:
			posts = await self.post_repo.list_posts(0, settings.posts_page_size * 10, user_id=user_id)
		return {"user": user, "posts": posts}

	async def suggestions(self, principal: AuthenticatedUser) -> List[User]:
		following = await self.following_ids(principal.id)
		users = await self.cache.get_random_users(
			principal.id, following, sample=settings.suggestions_sample_size
		)
		if users:
			return users
		return await self.repo.random_users([principal.id, *following], settings.suggestions_sample_size)

	async def update_basic_info(self, principal: AuthenticatedUser, payload: BasicInfoRequest) -> User:
		changes = payload.model_dump()
		return await self._update(principal, changes, "update_basic_info_in_db")

	async def update_social_links(self, principal: AuthenticatedUser, payload: SocialLinksRequest) -> User:
		changes = {"social": payload.model_dump()}
		return await self._update(principal, changes, "update_social_links_in_db")

	async def update_notification_settings(
		self,
		principal: AuthenticatedUser,
		payload: NotificationSettingsRequest,
	) -> User:
		changes = {"notifications": payload.model_dump()}
		return await self._update(principal, changes, "update_notification_settings_in_db")

	async def _update(self, principal: AuthenticatedUser, changes: Dict[str, Any], job_type: str) -> User:
		# make sure the hash exists before a partial write lands on it
		if await read_user(self.cache, self.repo, principal.id) is None:
			raise NotFoundError("user_not_found")
		user = await self.cache.update_fields(principal.id, changes)
		if user is None:
			raise NotFoundError("user_not_found")
		await self.broadcaster.emit(namespaces.USERS, "update user", user.model_dump(mode="json"))
		await self.queues.enqueue("user", job_type, {"user_id": principal.id, "changes": changes})
		return user
