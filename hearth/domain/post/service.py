"""Post create, read, update and delete.

Every mutation follows the same order: validate, write the cache, broadcast,
enqueue the durable write. A cache failure raises before anything is
broadcast or queued.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from hearth.cache.base import page_bounds
from hearth.cache.post import PostCache
from hearth.cache.user import UserCache
from hearth.domain.exceptions import NotAuthorizedError, NotFoundError, ValidationError
from hearth.domain.models import Image, Post
from hearth.domain.post.schemas import PostRequest, PostWithImageRequest, UpdatePostRequest
from hearth.domain.readers import read_post
from hearth.infra.auth import AuthenticatedUser
from hearth.infra.ids import new_id
from hearth.infra.uploads import BlobUploader
from hearth.obs import metrics as obs_metrics
from hearth.queue.registry import QueueSet
from hearth.settings import settings
from hearth.sockets import namespaces
from hearth.sockets.broadcast import Broadcaster
from hearth.store.post import PostRepository
from hearth.store.user import UserRepository

_LOG = logging.getLogger(__name__)


class PostService:
	def __init__(
		self,
		*,
		post_cache: PostCache,
		post_repository: PostRepository,
		user_cache: UserCache,
		user_repository: UserRepository,
		queues: QueueSet,
		broadcaster: Broadcaster,
		uploader: BlobUploader,
	) -> None:
		self.cache = post_cache
		self.repo = post_repository
		self.user_cache = user_cache
		self.user_repo = user_repository
		self.queues = queues
		self.broadcaster = broadcaster
		self.uploader = uploader

	def _build(self, principal: AuthenticatedUser, payload: PostRequest, **extra: Any) -> Post:
		return Post(
			id=new_id(),
			user_id=principal.id,
			username=principal.username,
			email=principal.email,
			avatar_color=principal.avatar_color,
			profile_picture=payload.profile_picture,
			post=payload.post,
			bg_color=payload.bg_color,
			feelings=payload.feelings,
			privacy=payload.privacy,
			gif_url=payload.gif_url,
			**extra,
		)

	async def create_post(self, principal: AuthenticatedUser, payload: PostRequest) -> Post:
		if not (payload.post or payload.gif_url):
			raise ValidationError("post_is_empty")
		post = self._build(principal, payload)
		return await self._publish(principal, post)

	async def create_post_with_image(self, principal: AuthenticatedUser, payload: PostWithImageRequest) -> Post:
		upload = await self.uploader.upload(payload.image)
		post = self._build(principal, payload, img_id=upload.public_id, img_version=upload.version)
		post = await self._publish(principal, post)
		image = Image(id=new_id(), user_id=principal.id, img_id=upload.public_id, img_version=upload.version)
		await self.queues.enqueue("image", "add_image_to_db", {"image": image.model_dump(mode="json")})
		return post

	async def _publish(self, principal: AuthenticatedUser, post: Post) -> Post:
		await self.cache.save_post(post, principal.u_id)
		await self.broadcaster.emit(namespaces.POSTS, "add post", post.model_dump(mode="json"))
		await self.queues.enqueue("post", "add_post_to_db", {"post": post.model_dump(mode="json")})
		_LOG.info("post.created", extra={"post_id": post.id})
		return post

	async def list_posts(self, page: int) -> Dict[str, Any]:
		size = settings.posts_page_size
		skip, limit = page_bounds(page, size)
		posts: List[Post] = await self.cache.get_posts(skip, limit - 1)
		if posts:
			total = await self.cache.get_total_posts()
		else:
			obs_metrics.cold_read("post_page", "fallback")
			posts = await self.repo.list_posts(skip, size)
			total = await self.repo.count_posts()
		return {"posts": posts, "total_posts": total}

	async def list_posts_with_images(self, page: int) -> Dict[str, Any]:
		size = settings.posts_page_size
		skip, limit = page_bounds(page, size)
		posts: List[Post] = await self.cache.get_posts_with_images(skip, limit - 1)
		if not posts:
			obs_metrics.cold_read("post_page", "fallback")
			posts = await self.repo.list_posts(skip, size, with_images=True)
		return {"posts": posts}

	async def get_post(self, post_id: str) -> Post:
		post = await read_post(self.cache, self.repo, self.user_cache, self.user_repo, post_id)
		if post is None:
			raise NotFoundError("post_not_found")
		return post

	async def update_post(self, principal: AuthenticatedUser, post_id: str, payload: UpdatePostRequest) -> Post:
		existing = await self.get_post(post_id)
		if existing.user_id != principal.id:
			raise NotAuthorizedError("not_post_owner")
		changes = payload.model_dump(exclude_none=True, exclude={"image"})
		if payload.image:
			upload = await self.uploader.upload(payload.image)
			changes.update({"img_id": upload.public_id, "img_version": upload.version})
		if not changes:
			raise ValidationError("no_updates_requested")
		post = await self.cache.update_post(post_id, changes)
		if post is None:
			raise NotFoundError("post_not_found")
		await self.broadcaster.emit(namespaces.POSTS, "update post", post.model_dump(mode="json"))
		await self.queues.enqueue("post", "update_post_in_db", {"post_id": post_id, "changes": changes})
		return post

	async def delete_post(self, principal: AuthenticatedUser, post_id: str) -> None:
		existing = await self.get_post(post_id)
		if existing.user_id != principal.id:
			raise NotAuthorizedError("not_post_owner")
		await self.cache.delete_post(post_id, principal.id)
		await self.broadcaster.emit(namespaces.POSTS, "delete post", {"post_id": post_id})
		await self.queues.enqueue("post", "delete_post_from_db", {"post_id": post_id, "user_id": principal.id})
