"""Comments on posts."""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from hearth.cache.comment import CommentCache
from hearth.domain.comment.schemas import CommentRequest
from hearth.domain.exceptions import NotFoundError
from hearth.domain.models import Comment
from hearth.infra.auth import AuthenticatedUser
from hearth.infra.ids import new_id
from hearth.obs import metrics as obs_metrics
from hearth.queue.registry import QueueSet
from hearth.sockets import namespaces
from hearth.sockets.broadcast import Broadcaster
from hearth.store.comment import CommentRepository

_LOG = logging.getLogger(__name__)


class CommentService:
	def __init__(
		self,
		*,
		comment_cache: CommentCache,
		comment_repository: CommentRepository,
		queues: QueueSet,
		broadcaster: Broadcaster,
	) -> None:
		self.cache = comment_cache
		self.repo = comment_repository
		self.queues = queues
		self.broadcaster = broadcaster

	async def add_comment(self, principal: AuthenticatedUser, payload: CommentRequest) -> Comment:
		comment = Comment(
			id=new_id(),
			post_id=payload.post_id,
			user_to=payload.user_to,
			username=principal.username,
			avatar_color=principal.avatar_color,
			profile_picture=payload.profile_picture,
			comment=payload.comment,
		)
		await self.cache.save_comment(comment)
		document = comment.model_dump(mode="json")
		await self.broadcaster.emit(namespaces.POSTS, "add comment", document)
		await self.queues.enqueue(
			"comment",
			"add_comment_to_db",
			{"comment": document, "user_from": principal.id},
		)
		_LOG.info("comment.created", extra={"post_id": comment.post_id, "comment_id": comment.id})
		return comment

	async def get_comments(self, post_id: str) -> List[Comment]:
		comments = await self.cache.get_comments(post_id)
		if comments:
			return comments
		obs_metrics.cold_read("comments", "fallback")
		return await self.repo.list_for_post(post_id)

	async def get_comment_names(self, post_id: str) -> Dict[str, Any]:
		names = await self.cache.get_comment_names(post_id)
		if names["count"]:
			return names
		obs_metrics.cold_read("comment_names", "fallback")
		return await self.repo.names_for_post(post_id)

	async def get_comment(self, post_id: str, comment_id: str) -> Comment:
		comment = await self.cache.get_comment(post_id, comment_id)
		if comment is None:
			obs_metrics.cold_read("comment", "fallback")
			comment = await self.repo.get(comment_id)
		if comment is None or comment.post_id != post_id:
			raise NotFoundError("comment_not_found")
		return comment
