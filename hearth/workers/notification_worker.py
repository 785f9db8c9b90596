"""Applies notification read and delete requests."""

from __future__ import annotations

from hearth.queue.base import Job, JobQueue
from hearth.store.notification import NotificationRepository


class NotificationWorker:
	def __init__(self, *, repository: NotificationRepository | None = None) -> None:
		self.repo = repository or NotificationRepository()

	def register(self, queue: JobQueue) -> None:
		queue.register("update_notification", self.mark_read)
		queue.register("delete_notification", self.delete)

	async def mark_read(self, job: Job) -> None:
		await self.repo.mark_read(job.payload["notification_id"], job.payload["user_id"])

	async def delete(self, job: Job) -> None:
		await self.repo.delete(job.payload["notification_id"], job.payload["user_id"])


__all__ = ["NotificationWorker"]
