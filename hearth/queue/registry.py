"""The fixed set of named queues used by the request handlers."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterator, List

from hearth.infra.redis import RedisProxy
from hearth.queue.base import JobQueue

QUEUE_NAMES: tuple[str, ...] = (
	"auth",
	"user",
	"post",
	"comment",
	"reaction",
	"follower",
	"blocked",
	"chat",
	"notification",
	"image",
	"email",
)


class QueueSet:
	"""Name-indexed access to the process's queues."""

	def __init__(self, queues: Dict[str, JobQueue]) -> None:
		self._queues = queues

	def __getitem__(self, name: str) -> JobQueue:
		return self._queues[name]

	def __iter__(self) -> Iterator[JobQueue]:
		return iter(self._queues.values())

	def __contains__(self, name: object) -> bool:
		return name in self._queues

	async def enqueue(self, queue: str, job_type: str, payload: Dict[str, Any]) -> str:
		return await self._queues[queue].enqueue(job_type, payload)

	async def start(self) -> List[asyncio.Task]:
		tasks: List[asyncio.Task] = []
		for queue in self._queues.values():
			if queue.job_types:
				tasks.extend(await queue.start())
		return tasks

	async def stop(self) -> None:
		for queue in self._queues.values():
			await queue.stop()


def build_queues(redis: RedisProxy | None = None, **options: Any) -> QueueSet:
	return QueueSet({name: JobQueue(name, redis, **options) for name in QUEUE_NAMES})
