"""Read-through helpers for singleton entities.

On a cache miss the durable store is consulted; a hit there is written back
to the cache, and a miss is remembered briefly so repeated lookups of an
absent id do not reach the database each time.
"""

from __future__ import annotations

import logging
from typing import Optional

from hearth.cache.post import PostCache
from hearth.cache.user import UserCache
from hearth.domain.models import Post, User
from hearth.obs import metrics as obs_metrics
from hearth.settings import settings
from hearth.store.post import PostRepository
from hearth.store.user import UserRepository

_LOG = logging.getLogger(__name__)


async def read_user(cache: UserCache, repository: UserRepository, user_id: str) -> Optional[User]:
	user = await cache.get_user(user_id)
	if user is not None:
		return user
	if settings.cache_populate_on_miss and await cache.is_missing(user_id):
		return None
	user = await repository.get_by_id(user_id)
	obs_metrics.cold_read("user", "hit" if user else "miss")
	if not settings.cache_populate_on_miss:
		return user
	if user is None:
		await cache.mark_missing(user_id, settings.cache_negative_ttl_seconds)
	else:
		await cache.save_user(user)
	return user


async def read_post(
	cache: PostCache,
	repository: PostRepository,
	user_cache: UserCache,
	user_repository: UserRepository,
	post_id: str,
) -> Optional[Post]:
	post = await cache.get_post(post_id)
	if post is not None:
		return post
	# a deleted post leaves a permanent marker
	if await cache.is_missing(post_id):
		return None
	post = await repository.get(post_id)
	obs_metrics.cold_read("post", "hit" if post else "miss")
	if not settings.cache_populate_on_miss:
		return post
	if post is None:
		await cache.mark_missing(post_id, settings.cache_negative_ttl_seconds)
		return None
	author = await read_user(user_cache, user_repository, post.user_id)
	if author is None:
		_LOG.warning("readers.post_without_author", extra={"post_id": post_id})
		return post
	await cache.cache_post(post, author.u_id)
	if await cache.is_missing(post_id):
		return None
	return await cache.get_post(post_id) or post
