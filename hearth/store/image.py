"""Durable image records (profile, background and post images)."""

from __future__ import annotations

from typing import List

from hearth.domain.models import Image
from hearth.store.base import Repository

_COLUMNS = "id, user_id, img_id, img_version, bg_image_id, bg_image_version, created_at"


class ImageRepository(Repository):
	async def add(self, image: Image) -> bool:
		record = await self._fetchrow(
			f"""
			INSERT INTO images ({_COLUMNS})
			VALUES ($1, $2, $3, $4, $5, $6, $7)
			ON CONFLICT (id) DO NOTHING
			RETURNING id
			""",
			image.id,
			image.user_id,
			image.img_id,
			image.img_version,
			image.bg_image_id,
			image.bg_image_version,
			image.created_at,
		)
		return record is not None

	async def list_for_user(self, user_id: str) -> List[Image]:
		records = await self._fetch(
			f"SELECT {_COLUMNS} FROM images WHERE user_id=$1 ORDER BY created_at DESC",
			user_id,
		)
		return [Image.from_record(record) for record in records]

	async def delete(self, image_id: str, user_id: str) -> None:
		await self._execute("DELETE FROM images WHERE id=$1 AND user_id=$2", image_id, user_id)

	async def delete_background(self, user_id: str, bg_image_id: str) -> None:
		await self._execute(
			"DELETE FROM images WHERE user_id=$1 AND bg_image_id=$2",
			user_id,
			bg_image_id,
		)
