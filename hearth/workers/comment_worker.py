"""Persists comments and notifies the post author."""

from __future__ import annotations

from hearth.domain.models import Comment, Notification
from hearth.domain.notification.service import NotificationService
from hearth.queue.base import Job, JobQueue
from hearth.store.comment import CommentRepository


class CommentWorker:
	def __init__(self, *, notifications: NotificationService, repository: CommentRepository | None = None) -> None:
		self.repo = repository or CommentRepository()
		self.notifications = notifications

	def register(self, queue: JobQueue) -> None:
		queue.register("add_comment_to_db", self.add_comment)

	async def add_comment(self, job: Job) -> None:
		comment = Comment.model_validate(job.payload["comment"])
		await self.repo.create(comment)
		if not comment.user_to:
			return
		notification = Notification(
			id=f"comment-{comment.id}",
			user_to=comment.user_to,
			user_from=job.payload.get("user_from", ""),
			username=comment.username,
			avatar_color=comment.avatar_color,
			profile_picture=comment.profile_picture,
			message=f"{comment.username} commented on your post.",
			notification_type="comments",
			entity_id=comment.post_id,
			created_item_id=comment.id,
			comment=comment.comment,
		)
		await self.notifications.deliver(notification, email_header="Comment Notification")


__all__ = ["CommentWorker"]
