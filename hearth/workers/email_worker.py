"""Sends queued emails; a send failure is retried by the queue."""

from __future__ import annotations

import logging

from hearth.infra.mailer import Mailer, mask_email
from hearth.queue.base import Job, JobQueue

_LOG = logging.getLogger(__name__)


class EmailWorker:
	def __init__(self, *, mailer: Mailer) -> None:
		self.mailer = mailer

	def register(self, queue: JobQueue) -> None:
		queue.register("send_email", self.send_email)

	async def send_email(self, job: Job) -> None:
		to = job.payload["to"]
		await self.mailer.send(to, job.payload["subject"], job.payload["html"])
		_LOG.info("email_worker.sent", extra={"to": mask_email(to), "job_id": job.id})


__all__ = ["EmailWorker"]
