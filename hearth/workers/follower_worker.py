"""Persists follow edges and blocks."""

from __future__ import annotations

from hearth.domain.models import Notification
from hearth.domain.notification.service import NotificationService
from hearth.queue.base import Job, JobQueue
from hearth.store.follower import FollowerRepository
from hearth.store.user import UserRepository


class FollowerWorker:
	def __init__(self, *, notifications: NotificationService, repository: FollowerRepository | None = None) -> None:
		self.repo = repository or FollowerRepository()
		self.notifications = notifications

	def register(self, queue: JobQueue) -> None:
		queue.register("add_follower_to_db", self.add_follower)
		queue.register("remove_follower_from_db", self.remove_follower)

	async def add_follower(self, job: Job) -> None:
		follower_id = job.payload["follower_id"]
		followee_id = job.payload["followee_id"]
		# the notification id is stable per job, so a retry after a partial run is safe
		await self.repo.add(follower_id, followee_id)
		username = job.payload.get("username", "")
		notification = Notification(
			id=f"follow-{follower_id}-{followee_id}-{job.id}",
			user_to=followee_id,
			user_from=follower_id,
			username=username,
			avatar_color=job.payload.get("avatar_color", ""),
			profile_picture=job.payload.get("profile_picture", ""),
			message=f"{username} is now following you.",
			notification_type="follows",
			entity_id=follower_id,
		)
		await self.notifications.deliver(notification, email_header="Follower Notification")

	async def remove_follower(self, job: Job) -> None:
		await self.repo.remove(job.payload["follower_id"], job.payload["followee_id"])


class BlockedWorker:
	def __init__(self, *, repository: UserRepository | None = None) -> None:
		self.repo = repository or UserRepository()

	def register(self, queue: JobQueue) -> None:
		queue.register("add_blocked_user_to_db", self.block)
		queue.register("remove_blocked_user_from_db", self.unblock)

	async def block(self, job: Job) -> None:
		await self.repo.set_blocked(job.payload["user_id"], job.payload["target_id"], blocked=True)

	async def unblock(self, job: Job) -> None:
		await self.repo.set_blocked(job.payload["user_id"], job.payload["target_id"], blocked=False)


__all__ = ["BlockedWorker", "FollowerWorker"]
