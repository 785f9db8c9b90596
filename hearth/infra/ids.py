"""Identifier helpers.

Entity ids are ULIDs minted by the request handler before either store is
touched, so the cache record and the queued durable write share one key.
"""

from __future__ import annotations

import secrets

import ulid

_U_ID_DIGITS = 12


def new_id() -> str:
	return ulid.new().str


def new_u_id() -> str:
	"""Random 12-digit numeric external id; used as the sorted-set score."""
	first = str(secrets.randbelow(9) + 1)
	rest = "".join(str(secrets.randbelow(10)) for _ in range(_U_ID_DIGITS - 1))
	return first + rest


def new_token(nbytes: int = 20) -> str:
	return secrets.token_hex(nbytes)
