"""Persists post creation, edits and deletion."""

from __future__ import annotations

import logging

from hearth.domain.models import Post
from hearth.queue.base import Job, JobQueue
from hearth.store.post import PostRepository

_LOG = logging.getLogger(__name__)


class PostWorker:
	def __init__(self, *, repository: PostRepository | None = None) -> None:
		self.repo = repository or PostRepository()

	def register(self, queue: JobQueue) -> None:
		queue.register("add_post_to_db", self.add_post)
		queue.register("update_post_in_db", self.update_post)
		queue.register("delete_post_from_db", self.delete_post)

	async def add_post(self, job: Job) -> None:
		post = Post.model_validate(job.payload["post"])
		await self.repo.create(post)
		await job.update_progress(100)

	async def update_post(self, job: Job) -> None:
		await self.repo.update(job.payload["post_id"], job.payload["changes"])

	async def delete_post(self, job: Job) -> None:
		removed = await self.repo.delete(job.payload["post_id"], job.payload["user_id"])
		if not removed:
			_LOG.info("post_worker.delete_noop", extra={"post_id": job.payload["post_id"]})


__all__ = ["PostWorker"]
