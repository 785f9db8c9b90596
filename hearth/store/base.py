"""Shared helpers for the asyncpg repositories."""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence

from hearth.infra.postgres import get_pool


def set_clause(changes: Mapping[str, Any], allowed: Iterable[str], *, offset: int = 1) -> tuple[str, list[Any]]:
	"""Build ``col=$n`` assignments for whitelisted columns.

	Placeholders start after ``offset`` positional parameters.
	"""
	permitted = set(allowed)
	fields: list[str] = []
	values: list[Any] = []
	for column, value in changes.items():
		if column not in permitted:
			raise ValueError(f"column {column} cannot be updated")
		values.append(value)
		fields.append(f"{column}=${len(values) + offset}")
	return ", ".join(fields), values


class Repository:
	"""Base class; every query acquires a pooled connection."""

	async def _fetch(self, query: str, *args: Any) -> Sequence[Any]:
		pool = await get_pool()
		async with pool.acquire() as conn:
			return await conn.fetch(query, *args)

	async def _fetchrow(self, query: str, *args: Any):
		pool = await get_pool()
		async with pool.acquire() as conn:
			return await conn.fetchrow(query, *args)

	async def _fetchval(self, query: str, *args: Any):
		pool = await get_pool()
		async with pool.acquire() as conn:
			return await conn.fetchval(query, *args)

	async def _execute(self, query: str, *args: Any) -> str:
		pool = await get_pool()
		async with pool.acquire() as conn:
			return await conn.execute(query, *args)
