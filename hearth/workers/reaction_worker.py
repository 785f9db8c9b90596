"""Persists reactions and notifies the post author."""

from __future__ import annotations

import logging

from hearth.domain.models import Notification, Reaction
from hearth.domain.notification.service import NotificationService
from hearth.queue.base import Job, JobQueue
from hearth.store.reaction import ReactionRepository

_LOG = logging.getLogger(__name__)


class ReactionWorker:
	def __init__(self, *, notifications: NotificationService, repository: ReactionRepository | None = None) -> None:
		self.repo = repository or ReactionRepository()
		self.notifications = notifications

	def register(self, queue: JobQueue) -> None:
		queue.register("add_reaction_to_db", self.add_reaction)
		queue.register("remove_reaction_from_db", self.remove_reaction)

	async def add_reaction(self, job: Job) -> None:
		reaction = Reaction.model_validate(job.payload["reaction"])
		if not await self.repo.save(reaction):
			_LOG.info("reaction_worker.stale", extra={"reaction_id": reaction.id})
			return
		if not reaction.user_to:
			return
		notification = Notification(
			id=f"reaction-{reaction.id}",
			user_to=reaction.user_to,
			user_from=job.payload.get("user_from", ""),
			username=reaction.username,
			avatar_color=reaction.avatar_color,
			profile_picture=reaction.profile_picture,
			message=f"{reaction.username} reacted to your post.",
			notification_type="reactions",
			entity_id=reaction.post_id,
			created_item_id=reaction.id,
			reaction=reaction.type,
		)
		await self.notifications.deliver(notification, email_header="Post Reaction Notification")

	async def remove_reaction(self, job: Job) -> None:
		await self.repo.remove(job.payload["post_id"], job.payload["username"])


__all__ = ["ReactionWorker"]
