"""Persists image records and the profile fields that point at them."""

from __future__ import annotations

from hearth.domain.models import Image
from hearth.queue.base import Job, JobQueue
from hearth.store.image import ImageRepository
from hearth.store.user import UserRepository


class ImageWorker:
	def __init__(
		self,
		*,
		repository: ImageRepository | None = None,
		user_repository: UserRepository | None = None,
	) -> None:
		self.repo = repository or ImageRepository()
		self.user_repo = user_repository or UserRepository()

	def register(self, queue: JobQueue) -> None:
		queue.register("add_image_to_db", self.add_image)
		queue.register("add_user_profile_image_to_db", self.add_profile_image)
		queue.register("update_bg_image_in_db", self.update_background)
		queue.register("remove_image_from_db", self.remove_image)
		queue.register("remove_bg_image_from_db", self.remove_background)

	async def add_image(self, job: Job) -> None:
		await self.repo.add(Image.model_validate(job.payload["image"]))

	async def add_profile_image(self, job: Job) -> None:
		await self.user_repo.update_fields(job.payload["user_id"], {"profile_picture": job.payload["url"]})
		await self.repo.add(Image.model_validate(job.payload["image"]))

	async def update_background(self, job: Job) -> None:
		image = Image.model_validate(job.payload["image"])
		await self.user_repo.update_fields(
			job.payload["user_id"],
			{"bg_image_id": image.bg_image_id, "bg_image_version": image.bg_image_version},
		)
		await self.repo.add(image)

	async def remove_image(self, job: Job) -> None:
		await self.repo.delete(job.payload["image_id"], job.payload["user_id"])

	async def remove_background(self, job: Job) -> None:
		user_id = job.payload["user_id"]
		await self.user_repo.update_fields(user_id, {"bg_image_id": "", "bg_image_version": ""})
		await self.repo.delete_background(user_id, job.payload["bg_image_id"])


__all__ = ["ImageWorker"]
