"""Typed field codecs for Redis hash entities.

A hash stores only strings. Each entity kind declares the type of every
field once; ``HashCodec`` then encodes a record into a flat mapping for
``HSET`` and decodes an ``HGETALL`` reply back into the record. Counter
maps (post reactions) are spread across one hash field per key so they
can be incremented atomically with ``HINCRBY``.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, Iterable, Mapping, Type, TypeVar

from pydantic import BaseModel

from hearth.domain.models import REACTION_TYPES, Post, User

M = TypeVar("M", bound=BaseModel)


class FieldKind(str, Enum):
	STR = "str"
	INT = "int"
	BOOL = "bool"
	JSON = "json"
	DATETIME = "datetime"
	COUNTERS = "counters"


def _encode_scalar(kind: FieldKind, value: Any) -> str:
	if kind is FieldKind.STR:
		return "" if value is None else str(value)
	if kind is FieldKind.INT:
		return str(int(value or 0))
	if kind is FieldKind.BOOL:
		return "1" if value else "0"
	if kind is FieldKind.JSON:
		if isinstance(value, BaseModel):
			value = value.model_dump(mode="json")
		return json.dumps(value, separators=(",", ":"))
	if kind is FieldKind.DATETIME:
		if isinstance(value, datetime):
			return value.isoformat()
		return str(value)
	raise ValueError(f"unsupported scalar kind: {kind}")


def _decode_scalar(kind: FieldKind, raw: str) -> Any:
	if kind is FieldKind.STR:
		return raw
	if kind is FieldKind.INT:
		return int(raw) if raw else 0
	if kind is FieldKind.BOOL:
		return raw in ("1", "true", "True")
	if kind is FieldKind.JSON:
		return json.loads(raw) if raw else None
	if kind is FieldKind.DATETIME:
		return datetime.fromisoformat(raw)
	raise ValueError(f"unsupported scalar kind: {kind}")


class HashCodec(Generic[M]):
	"""Encode/decode one record type to and from a flat Redis hash."""

	def __init__(
		self,
		model: Type[M],
		fields: Mapping[str, FieldKind],
		*,
		counter_keys: Mapping[str, Iterable[str]] | None = None,
	) -> None:
		self.model = model
		self.fields: Dict[str, FieldKind] = dict(fields)
		self.counter_keys: Dict[str, tuple[str, ...]] = {
			name: tuple(keys) for name, keys in (counter_keys or {}).items()
		}
		for name, kind in self.fields.items():
			if kind is FieldKind.COUNTERS and name not in self.counter_keys:
				raise ValueError(f"counter field {name} needs its keys declared")

	def kind(self, name: str) -> FieldKind:
		try:
			return self.fields[name]
		except KeyError:
			raise KeyError(f"{self.model.__name__} has no cached field {name!r}") from None

	@staticmethod
	def counter_field(name: str, key: str) -> str:
		return f"{name}.{key}"

	def encode_field(self, name: str, value: Any) -> Dict[str, str]:
		kind = self.kind(name)
		if kind is FieldKind.COUNTERS:
			counts = dict(value or {})
			return {
				self.counter_field(name, key): str(int(counts.get(key, 0)))
				for key in self.counter_keys[name]
			}
		return {name: _encode_scalar(kind, value)}

	def encode(self, record: M) -> Dict[str, str]:
		mapping: Dict[str, str] = {}
		for name in self.fields:
			mapping.update(self.encode_field(name, getattr(record, name)))
		return mapping

	def decode(self, mapping: Mapping[str, str]) -> M:
		values: Dict[str, Any] = {}
		for name, kind in self.fields.items():
			if kind is FieldKind.COUNTERS:
				values[name] = {
					key: int(mapping.get(self.counter_field(name, key)) or 0)
					for key in self.counter_keys[name]
				}
				continue
			raw = mapping.get(name)
			if raw is None:
				continue
			decoded = _decode_scalar(kind, raw)
			if decoded is not None:
				values[name] = decoded
		return self.model.model_validate(values)


USER_CODEC: HashCodec[User] = HashCodec(
	User,
	{
		"id": FieldKind.STR,
		"u_id": FieldKind.STR,
		"username": FieldKind.STR,
		"email": FieldKind.STR,
		"avatar_color": FieldKind.STR,
		"profile_picture": FieldKind.STR,
		"posts_count": FieldKind.INT,
		"followers_count": FieldKind.INT,
		"following_count": FieldKind.INT,
		"blocked": FieldKind.JSON,
		"blocked_by": FieldKind.JSON,
		"notifications": FieldKind.JSON,
		"social": FieldKind.JSON,
		"work": FieldKind.STR,
		"school": FieldKind.STR,
		"location": FieldKind.STR,
		"quote": FieldKind.STR,
		"bg_image_id": FieldKind.STR,
		"bg_image_version": FieldKind.STR,
		"created_at": FieldKind.DATETIME,
	},
)

POST_CODEC: HashCodec[Post] = HashCodec(
	Post,
	{
		"id": FieldKind.STR,
		"user_id": FieldKind.STR,
		"username": FieldKind.STR,
		"email": FieldKind.STR,
		"avatar_color": FieldKind.STR,
		"profile_picture": FieldKind.STR,
		"post": FieldKind.STR,
		"bg_color": FieldKind.STR,
		"feelings": FieldKind.STR,
		"privacy": FieldKind.STR,
		"gif_url": FieldKind.STR,
		"img_id": FieldKind.STR,
		"img_version": FieldKind.STR,
		"comments_count": FieldKind.INT,
		"reactions": FieldKind.COUNTERS,
		"created_at": FieldKind.DATETIME,
	},
	counter_keys={"reactions": REACTION_TYPES},
)


def dump_json(record: BaseModel) -> str:
	"""Serialize a list-entity record for storage in a Redis list."""
	return record.model_dump_json()


def load_json(model: Type[M], raw: str) -> M:
	return model.model_validate_json(raw)
