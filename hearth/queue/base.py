"""Redis-backed named job queues.

Each queue keeps one wait list and one active list per job type. Workers
claim a job id with ``LMOVE wait -> active``, so an id is never lost between
claim and completion: ids stranded on an active list by a crash are moved
back by ``recover`` on the next start. Delivery is therefore at-least-once
and handlers must be idempotent.

Failed handlers are retried with exponential backoff through a delayed
sorted set. After ``max_attempts`` the job is marked failed and its id is
pushed onto the queue's failed list, where it stays until an operator
requeues it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from redis.exceptions import RedisError

from hearth.domain.exceptions import QueueUnavailableError
from hearth.infra.ids import new_id
from hearth.infra.redis import RedisProxy, redis_client
from hearth.obs import metrics as obs_metrics
from hearth.settings import settings

_LOG = logging.getLogger(__name__)


class JobStatus(str, Enum):
	ENQUEUED = "enqueued"
	RUNNING = "running"
	COMPLETED = "completed"
	FAILED = "failed"


@dataclass(slots=True)
class Job:
	id: str
	queue: str
	type: str
	payload: Dict[str, Any]
	status: JobStatus = JobStatus.ENQUEUED
	attempts: int = 0
	max_attempts: int = 1
	progress: int = 0
	error: str = ""
	created_at: float = 0.0
	updated_at: float = 0.0
	_owner: Optional["JobQueue"] = field(default=None, repr=False, compare=False)

	@classmethod
	def from_hash(cls, data: Dict[str, str], owner: "JobQueue" | None = None) -> "Job":
		return cls(
			id=data["id"],
			queue=data["queue"],
			type=data["type"],
			payload=json.loads(data.get("payload") or "{}"),
			status=JobStatus(data.get("status") or JobStatus.ENQUEUED.value),
			attempts=int(data.get("attempts") or 0),
			max_attempts=int(data.get("max_attempts") or 1),
			progress=int(data.get("progress") or 0),
			error=data.get("error") or "",
			created_at=float(data.get("created_at") or 0),
			updated_at=float(data.get("updated_at") or 0),
			_owner=owner,
		)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"queue": self.queue,
			"type": self.type,
			"payload": self.payload,
			"status": self.status.value,
			"attempts": self.attempts,
			"max_attempts": self.max_attempts,
			"progress": self.progress,
			"error": self.error,
			"created_at": self.created_at,
			"updated_at": self.updated_at,
		}

	async def update_progress(self, percent: int) -> None:
		"""Advisory only; nothing reads it to decide completion."""
		self.progress = max(0, min(100, int(percent)))
		if self._owner is not None:
			await self._owner._set_progress(self.id, self.progress)


JobHandler = Callable[[Job], Awaitable[None]]


class JobQueue:
	"""One named queue with a handler and worker pool per job type."""

	def __init__(
		self,
		name: str,
		redis: RedisProxy | None = None,
		*,
		max_attempts: int | None = None,
		backoff_seconds: float | None = None,
		poll_interval: float | None = None,
		completed_ttl_seconds: int | None = None,
	) -> None:
		self.name = name
		self.redis = redis or redis_client
		self.max_attempts = max_attempts if max_attempts is not None else settings.queue_max_attempts
		self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.queue_backoff_seconds
		self.poll_interval = poll_interval if poll_interval is not None else settings.queue_poll_interval
		self.completed_ttl_seconds = (
			completed_ttl_seconds if completed_ttl_seconds is not None else settings.queue_completed_ttl_seconds
		)
		self._handlers: Dict[str, JobHandler] = {}
		self._concurrency: Dict[str, int] = {}
		self._tasks: List[asyncio.Task] = []
		self._running = False

	# --- keys -------------------------------------------------------------

	def _job_key(self, job_id: str) -> str:
		return f"queue:{self.name}:job:{job_id}"

	def _wait_key(self, job_type: str) -> str:
		return f"queue:{self.name}:{job_type}:wait"

	def _active_key(self, job_type: str) -> str:
		return f"queue:{self.name}:{job_type}:active"

	@property
	def _delayed_key(self) -> str:
		return f"queue:{self.name}:delayed"

	@property
	def _failed_key(self) -> str:
		return f"queue:{self.name}:failed"

	# --- registration -------------------------------------------------------

	def register(self, job_type: str, handler: JobHandler, *, concurrency: int | None = None) -> None:
		if job_type in self._handlers:
			raise ValueError(f"{self.name}: handler for {job_type} already registered")
		self._handlers[job_type] = handler
		self._concurrency[job_type] = max(1, concurrency or settings.queue_concurrency)

	@property
	def job_types(self) -> List[str]:
		return list(self._handlers)

	# --- producer side ------------------------------------------------------

	async def enqueue(self, job_type: str, payload: Dict[str, Any]) -> str:
		"""Persist the job record and make it claimable; returns the job id."""
		job_id = new_id()
		now = time.time()
		record = {
			"id": job_id,
			"queue": self.name,
			"type": job_type,
			"payload": json.dumps(payload, default=str),
			"status": JobStatus.ENQUEUED.value,
			"attempts": "0",
			"max_attempts": str(self.max_attempts),
			"progress": "0",
			"error": "",
			"created_at": str(now),
			"updated_at": str(now),
		}
		try:
			async with self.redis.pipeline(transaction=True) as pipe:
				pipe.hset(self._job_key(job_id), mapping=record)
				pipe.lpush(self._wait_key(job_type), job_id)
				await pipe.execute()
		except (RedisError, OSError) as exc:
			_LOG.error(
				"queue.enqueue_failed",
				extra={"queue": self.name, "job_type": job_type, "error": repr(exc)},
			)
			raise QueueUnavailableError() from exc
		obs_metrics.job_enqueued(self.name, job_type)
		return job_id

	# --- consumer side ------------------------------------------------------

	async def get_job(self, job_id: str) -> Optional[Job]:
		data = await self.redis.hgetall(self._job_key(job_id))
		if not data:
			return None
		return Job.from_hash(data, owner=self)

	async def _set_progress(self, job_id: str, progress: int) -> None:
		await self.redis.hset(self._job_key(job_id), mapping={"progress": str(progress), "updated_at": str(time.time())})

	async def process_once(self, job_type: str) -> bool:
		"""Claim and run one job of ``job_type``; False when the wait list was empty."""
		handler = self._handlers.get(job_type)
		if handler is None:
			raise KeyError(f"{self.name}: no handler for {job_type}")
		job_id = await self.redis.lmove(self._wait_key(job_type), self._active_key(job_type), "RIGHT", "LEFT")
		if job_id is None:
			return False
		job = await self.get_job(job_id)
		if job is None:
			_LOG.warning("queue.missing_job_record", extra={"queue": self.name, "job_id": job_id})
			await self.redis.lrem(self._active_key(job_type), 1, job_id)
			return True
		job.attempts += 1
		job.status = JobStatus.RUNNING
		await self.redis.hset(
			self._job_key(job.id),
			mapping={"status": job.status.value, "attempts": str(job.attempts), "updated_at": str(time.time())},
		)
		start = time.perf_counter()
		try:
			await handler(job)
		except Exception as exc:  # handler failures are recorded on the job, never raised
			duration = time.perf_counter() - start
			_LOG.exception(
				"queue.job_failed",
				extra={"queue": self.name, "job_type": job_type, "job_id": job.id, "attempt": job.attempts},
			)
			await self._handle_failure(job, exc)
			obs_metrics.record_job_run(self.name, job_type, result="error", duration_seconds=duration)
			return True
		duration = time.perf_counter() - start
		async with self.redis.pipeline(transaction=True) as pipe:
			pipe.hset(
				self._job_key(job.id),
				mapping={"status": JobStatus.COMPLETED.value, "progress": "100", "updated_at": str(time.time())},
			)
			pipe.expire(self._job_key(job.id), self.completed_ttl_seconds)
			pipe.lrem(self._active_key(job_type), 1, job.id)
			await pipe.execute()
		obs_metrics.record_job_run(self.name, job_type, result="ok", duration_seconds=duration)
		return True

	def retry_delay(self, attempts: int) -> float:
		return self.backoff_seconds * (2 ** max(0, attempts - 1))

	async def _handle_failure(self, job: Job, exc: Exception) -> None:
		now = time.time()
		error = f"{type(exc).__name__}: {exc}"[:500]
		async with self.redis.pipeline(transaction=True) as pipe:
			pipe.lrem(self._active_key(job.type), 1, job.id)
			if job.attempts < job.max_attempts:
				pipe.hset(
					self._job_key(job.id),
					mapping={"status": JobStatus.ENQUEUED.value, "error": error, "updated_at": str(now)},
				)
				pipe.zadd(self._delayed_key, {job.id: now + self.retry_delay(job.attempts)})
			else:
				pipe.hset(
					self._job_key(job.id),
					mapping={"status": JobStatus.FAILED.value, "error": error, "updated_at": str(now)},
				)
				pipe.lpush(self._failed_key, job.id)
			await pipe.execute()
		if job.attempts >= job.max_attempts:
			_LOG.error(
				"queue.job_dead",
				extra={"queue": self.name, "job_type": job.type, "job_id": job.id, "error_detail": error},
			)

	async def promote_delayed(self, now: float | None = None) -> int:
		"""Move retries whose backoff has elapsed back onto their wait lists."""
		cutoff = time.time() if now is None else now
		due: List[str] = await self.redis.zrangebyscore(self._delayed_key, "-inf", cutoff)
		moved = 0
		for job_id in due:
			if not await self.redis.zrem(self._delayed_key, job_id):
				continue  # another promoter took it
			job_type = await self.redis.hget(self._job_key(job_id), "type")
			if job_type is None:
				continue
			await self.redis.lpush(self._wait_key(job_type), job_id)
			moved += 1
		return moved

	async def recover(self) -> int:
		"""Requeue ids left on active lists by a worker that died mid-job."""
		moved = 0
		for job_type in self._handlers:
			while await self.redis.lmove(self._active_key(job_type), self._wait_key(job_type), "RIGHT", "LEFT"):
				moved += 1
		if moved:
			_LOG.warning("queue.recovered_jobs", extra={"queue": self.name, "count": moved})
		return moved

	# --- failed log -------------------------------------------------------

	async def failed_jobs(self, start: int = 0, end: int = -1) -> List[Job]:
		ids: List[str] = await self.redis.lrange(self._failed_key, start, end)
		jobs: List[Job] = []
		for job_id in ids:
			job = await self.get_job(job_id)
			if job is not None:
				jobs.append(job)
		return jobs

	async def requeue_failed(self, job_id: str) -> bool:
		"""Give a failed job a fresh set of attempts."""
		job = await self.get_job(job_id)
		if job is None or job.status is not JobStatus.FAILED:
			return False
		async with self.redis.pipeline(transaction=True) as pipe:
			pipe.lrem(self._failed_key, 1, job_id)
			pipe.hset(
				self._job_key(job_id),
				mapping={"status": JobStatus.ENQUEUED.value, "attempts": "0", "error": "", "updated_at": str(time.time())},
			)
			pipe.lpush(self._wait_key(job.type), job_id)
			await pipe.execute()
		_LOG.info("queue.requeued", extra={"queue": self.name, "job_id": job_id})
		return True

	# --- worker lifecycle ---------------------------------------------------

	async def _worker(self, job_type: str) -> None:
		while self._running:
			try:
				processed = await self.process_once(job_type)
			except asyncio.CancelledError:
				raise
			except (RedisError, OSError):
				_LOG.exception("queue.worker_store_error", extra={"queue": self.name, "job_type": job_type})
				processed = False
			if not processed:
				await asyncio.sleep(self.poll_interval)

	async def _promoter(self) -> None:
		while self._running:
			try:
				await self.promote_delayed()
			except asyncio.CancelledError:
				raise
			except (RedisError, OSError):
				_LOG.exception("queue.promote_failed", extra={"queue": self.name})
			await asyncio.sleep(self.poll_interval)

	async def start(self) -> List[asyncio.Task]:
		if self._running:
			return list(self._tasks)
		self._running = True
		await self.recover()
		for job_type, concurrency in self._concurrency.items():
			for index in range(concurrency):
				self._tasks.append(
					asyncio.create_task(self._worker(job_type), name=f"queue-{self.name}-{job_type}-{index}")
				)
		self._tasks.append(asyncio.create_task(self._promoter(), name=f"queue-{self.name}-delayed"))
		_LOG.info("queue.started", extra={"queue": self.name, "job_types": self.job_types})
		return list(self._tasks)

	async def stop(self) -> None:
		self._running = False
		for task in self._tasks:
			task.cancel()
		if self._tasks:
			await asyncio.gather(*self._tasks, return_exceptions=True)
		self._tasks.clear()
