"""Shared plumbing for the entity caches."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

from redis.exceptions import RedisError, WatchError

from hearth.domain.exceptions import CacheUnavailableError
from hearth.infra.redis import RedisProxy, redis_client
from hearth.obs import metrics as obs_metrics
from hearth.settings import settings

_LOG = logging.getLogger(__name__)

T = TypeVar("T")


def page_bounds(page: int, size: int) -> tuple[int, int]:
	"""Return ``(skip, limit)`` for a 1-based page.

	Cache ranges read ``skip .. limit - 1`` inclusive, durable reads use
	``OFFSET skip LIMIT size``; both give the same non-overlapping slice.
	"""
	page = max(1, int(page))
	return (page - 1) * size, size * page


class BaseCache:
	"""Owns the Redis handle and turns store failures into ``CacheUnavailableError``."""

	entity = "base"

	def __init__(self, redis: RedisProxy | None = None) -> None:
		self.redis = redis or redis_client

	@asynccontextmanager
	async def _guard(self, op: str) -> AsyncIterator[None]:
		try:
			yield
		except (RedisError, OSError) as exc:
			obs_metrics.cache_op(self.entity, op, "error")
			_LOG.error(
				"cache.unavailable",
				extra={"entity": self.entity, "op": op, "error": repr(exc)},
			)
			raise CacheUnavailableError() from exc
		obs_metrics.cache_op(self.entity, op)

	async def _optimistic(
		self,
		keys: Sequence[str],
		body: Callable[[Any], Awaitable[Tuple[Optional[T], bool]]],
		*,
		op: str,
	) -> Optional[T]:
		"""Run ``body`` under WATCH on ``keys`` and retry when another writer wins.

		``body`` reads through the pipeline (immediate mode), switches it to
		MULTI and queues its writes, then returns ``(result, commit)``. With
		``commit`` false nothing is written.
		"""
		async with self._guard(op):
			async with self.redis.pipeline(transaction=True) as pipe:
				for _ in range(max(1, settings.cache_cas_retries)):
					try:
						await pipe.watch(*keys)
						result, commit = await body(pipe)
						if not commit:
							await pipe.reset()
							return result
						await pipe.execute()
						return result
					except WatchError:
						obs_metrics.cache_cas_conflict(self.entity)
		_LOG.warning("cache.cas_exhausted", extra={"entity": self.entity, "keys": list(keys)})
		raise CacheUnavailableError("cache_contention")

	async def _compare_and_swap(
		self,
		key: str,
		apply: Callable[[Any, List[str]], Awaitable[Optional[T]]],
		*,
		op: str,
	) -> Optional[T]:
		"""Locate-and-replace over a list snapshot.

		``apply`` receives the pipeline in MULTI mode and the current list; it
		queues its writes and returns a result, or None to abort.
		"""

		async def body(pipe) -> Tuple[Optional[T], bool]:
			items: List[str] = await pipe.lrange(key, 0, -1)
			pipe.multi()
			result = await apply(pipe, items)
			return result, result is not None

		return await self._optimistic([key], body, op=op)
