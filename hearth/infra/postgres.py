"""AsyncPG pool management for the backend."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import asyncpg

from hearth.settings import settings

_LOG = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).with_name("schema.sql")

_pool: Optional[asyncpg.pool.Pool] = None


async def _init_connection(conn: asyncpg.Connection) -> None:
	await conn.set_type_codec("jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog")


async def init_pool() -> asyncpg.pool.Pool:
	global _pool
	if _pool is None:
		_pool = await asyncpg.create_pool(
			dsn=settings.postgres_url,
			min_size=settings.postgres_min_pool_size,
			max_size=settings.postgres_max_pool_size,
			init=_init_connection,
		)
		_LOG.info("postgres.pool_ready", extra={"max_size": settings.postgres_max_pool_size})
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	assert _pool is not None
	return _pool


async def apply_schema(pool: asyncpg.pool.Pool) -> None:
	"""Create tables and indexes when missing."""
	sql = SCHEMA_PATH.read_text(encoding="utf-8")
	async with pool.acquire() as conn:
		await conn.execute(sql)


async def ping() -> bool:
	if _pool is None:
		return False
	try:
		async with _pool.acquire() as conn:
			await conn.fetchval("SELECT 1")
		return True
	except (asyncpg.PostgresError, OSError):
		_LOG.warning("postgres.ping_failed", exc_info=True)
		return False


async def close_pool() -> None:
	global _pool
	if _pool is not None:
		await _pool.close()
		_pool = None
