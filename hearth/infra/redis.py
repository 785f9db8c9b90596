"""Redis connection management.

Provides a stable proxy object so imports like `from hearth.infra.redis import redis_client`
always reference the same proxy instance. The underlying client can be swapped at
runtime (e.g., to fakeredis in tests) without breaking previously imported references.
"""

from __future__ import annotations

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from hearth.settings import settings

_LOG = logging.getLogger(__name__)


class RedisProxy:
	"""Lightweight proxy that forwards attribute access to an underlying Redis client."""

	def __init__(self, client: redis.Redis):
		self._client: redis.Redis = client

	@property
	def client(self) -> redis.Redis:
		return self._client

	def set_client(self, client: redis.Redis) -> None:
		self._client = client

	async def close(self) -> None:
		close = getattr(self._client, "aclose", None) or getattr(self._client, "close")
		await close()

	def __getattr__(self, item):
		return getattr(self._client, item)


def create_client(url: str | None = None) -> redis.Redis:
	"""Build a client; no connection is opened until the first command."""
	return redis.from_url(url or settings.redis_url, decode_responses=True)


redis_client: RedisProxy = RedisProxy(create_client())


def set_redis_client(client: redis.Redis) -> None:
	redis_client.set_client(client)


async def ping() -> bool:
	try:
		return bool(await redis_client.ping())
	except (RedisError, OSError):
		_LOG.warning("redis.ping_failed", exc_info=True)
		return False


async def close_redis() -> None:
	await redis_client.close()
