"""Persists user profiles and profile edits."""

from __future__ import annotations

from hearth.domain.models import User
from hearth.queue.base import Job, JobQueue
from hearth.store.user import UserRepository


class UserWorker:
	def __init__(self, *, repository: UserRepository | None = None) -> None:
		self.repo = repository or UserRepository()

	def register(self, queue: JobQueue) -> None:
		queue.register("add_user_to_db", self.add_user)
		for job_type in (
			"update_basic_info_in_db",
			"update_social_links_in_db",
			"update_notification_settings_in_db",
		):
			queue.register(job_type, self.update_user)

	async def add_user(self, job: Job) -> None:
		await self.repo.create(User.model_validate(job.payload["user"]))

	async def update_user(self, job: Job) -> None:
		await self.repo.update_fields(job.payload["user_id"], job.payload["changes"])


__all__ = ["UserWorker"]
