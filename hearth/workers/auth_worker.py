"""Persists credential records created at signup."""

from __future__ import annotations

import logging

from hearth.domain.models import AuthRecord
from hearth.queue.base import Job, JobQueue
from hearth.store.auth import AuthRepository

_LOG = logging.getLogger(__name__)


class AuthWorker:
	def __init__(self, *, repository: AuthRepository | None = None) -> None:
		self.repo = repository or AuthRepository()

	def register(self, queue: JobQueue) -> None:
		queue.register("add_auth_user_to_db", self.add_auth_user)

	async def add_auth_user(self, job: Job) -> None:
		auth = AuthRecord.model_validate(job.payload["auth"])
		if not await self.repo.create(auth):
			_LOG.info("auth_worker.duplicate", extra={"auth_id": auth.id})


__all__ = ["AuthWorker"]
