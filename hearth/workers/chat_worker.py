"""Persists chat messages and in-place message changes."""

from __future__ import annotations

from hearth.domain.models import DeleteScope, Message, ReactionChange
from hearth.queue.base import Job, JobQueue
from hearth.store.chat import ChatRepository


class ChatWorker:
	def __init__(self, *, repository: ChatRepository | None = None) -> None:
		self.repo = repository or ChatRepository()

	def register(self, queue: JobQueue) -> None:
		queue.register("add_chat_message_to_db", self.add_message)
		queue.register("mark_messages_as_read_in_db", self.mark_as_read)
		queue.register("mark_message_as_deleted_in_db", self.mark_as_deleted)
		queue.register("update_message_reaction", self.update_reaction)

	async def add_message(self, job: Job) -> None:
		await self.repo.add_message(Message.model_validate(job.payload["message"]))

	async def mark_as_read(self, job: Job) -> None:
		await self.repo.mark_as_read(job.payload["conversation_id"], job.payload["reader_id"])

	async def mark_as_deleted(self, job: Job) -> None:
		await self.repo.mark_as_deleted(job.payload["message_id"], DeleteScope(job.payload["scope"]))

	async def update_reaction(self, job: Job) -> None:
		await self.repo.update_reaction(
			job.payload["message_id"],
			job.payload["sender_name"],
			job.payload.get("reaction", ""),
			ReactionChange(job.payload["type"]),
		)


__all__ = ["ChatWorker"]
