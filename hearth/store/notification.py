"""Durable notifications; there is no cache tier for these."""

from __future__ import annotations

from typing import List

from hearth.domain.models import Notification
from hearth.store.base import Repository

_COLUMNS = (
	"id, user_to, user_from, username, avatar_color, profile_picture, message, notification_type, "
	"entity_id, created_item_id, comment, reaction, post, img_id, img_version, gif_url, read, created_at"
)


class NotificationRepository(Repository):
	async def create(self, notification: Notification) -> bool:
		record = await self._fetchrow(
			f"""
			INSERT INTO notifications ({_COLUMNS})
			VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16, $17, $18)
			ON CONFLICT (id) DO NOTHING
			RETURNING id
			""",
			notification.id,
			notification.user_to,
			notification.user_from,
			notification.username,
			notification.avatar_color,
			notification.profile_picture,
			notification.message,
			notification.notification_type,
			notification.entity_id,
			notification.created_item_id,
			notification.comment,
			notification.reaction,
			notification.post,
			notification.img_id,
			notification.img_version,
			notification.gif_url,
			notification.read,
			notification.created_at,
		)
		return record is not None

	async def list_for_user(self, user_id: str) -> List[Notification]:
		records = await self._fetch(
			f"SELECT {_COLUMNS} FROM notifications WHERE user_to=$1 ORDER BY created_at DESC",
			user_id,
		)
		return [Notification.from_record(record) for record in records]

	async def mark_read(self, notification_id: str, user_id: str) -> None:
		await self._execute(
			"UPDATE notifications SET read=TRUE WHERE id=$1 AND user_to=$2", notification_id, user_id
		)

	async def delete(self, notification_id: str, user_id: str) -> None:
		await self._execute("DELETE FROM notifications WHERE id=$1 AND user_to=$2", notification_id, user_id)
