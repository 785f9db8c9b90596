"""Durable conversations and messages."""

from __future__ import annotations

from typing import List, Optional

from hearth.domain.models import DeleteScope, Message, MessageReaction, ReactionChange
from hearth.infra.postgres import get_pool
from hearth.store.base import Repository

_COLUMNS = (
	"id, conversation_id, sender_id, receiver_id, sender_username, sender_avatar_color, "
	"sender_profile_picture, receiver_username, receiver_avatar_color, receiver_profile_picture, "
	"body, gif_url, selected_image, is_read, delete_for_me, delete_for_everyone, reactions, created_at"
)


class ChatRepository(Repository):
	async def add_message(self, message: Message) -> bool:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				await conn.execute(
					"""
					INSERT INTO conversations (id, sender_id, receiver_id)
					VALUES ($1, $2, $3)
					ON CONFLICT (id) DO NOTHING
					""",
					message.conversation_id,
					message.sender_id,
					message.receiver_id,
				)
				record = await conn.fetchrow(
					f"""
					INSERT INTO messages ({_COLUMNS})
					VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14, $15, $16, $17, $18)
					ON CONFLICT (id) DO NOTHING
					RETURNING id
					""",
					message.id,
					message.conversation_id,
					message.sender_id,
					message.receiver_id,
					message.sender_username,
					message.sender_avatar_color,
					message.sender_profile_picture,
					message.receiver_username,
					message.receiver_avatar_color,
					message.receiver_profile_picture,
					message.body,
					message.gif_url,
					message.selected_image,
					message.is_read,
					message.delete_for_me,
					message.delete_for_everyone,
					[item.model_dump() for item in message.reactions],
					message.created_at,
				)
		return record is not None

	async def get_conversation_id(self, sender_id: str, receiver_id: str) -> Optional[str]:
		return await self._fetchval(
			"""
			SELECT id FROM conversations
			WHERE (sender_id=$1 AND receiver_id=$2) OR (sender_id=$2 AND receiver_id=$1)
			ORDER BY created_at LIMIT 1
			""",
			sender_id,
			receiver_id,
		)

	async def list_conversations(self, user_id: str) -> List[Message]:
		"""Latest message of every conversation the user takes part in."""
		records = await self._fetch(
			f"""
			SELECT DISTINCT ON (conversation_id) {_COLUMNS}
			FROM messages
			WHERE sender_id=$1 OR receiver_id=$1
			ORDER BY conversation_id, created_at DESC
			""",
			user_id,
		)
		messages = [Message.from_record(record) for record in records]
		return sorted(messages, key=lambda message: message.created_at, reverse=True)

	async def list_messages(self, conversation_id: str) -> List[Message]:
		records = await self._fetch(
			f"SELECT {_COLUMNS} FROM messages WHERE conversation_id=$1 ORDER BY created_at",
			conversation_id,
		)
		return [Message.from_record(record) for record in records]

	async def mark_as_read(self, conversation_id: str, reader_id: str) -> None:
		await self._execute(
			"UPDATE messages SET is_read=TRUE WHERE conversation_id=$1 AND receiver_id=$2 AND NOT is_read",
			conversation_id,
			reader_id,
		)

	async def mark_as_deleted(self, message_id: str, scope: DeleteScope) -> None:
		if scope is DeleteScope.FOR_EVERYONE:
			query = "UPDATE messages SET delete_for_me=TRUE, delete_for_everyone=TRUE WHERE id=$1"
		else:
			query = "UPDATE messages SET delete_for_me=TRUE WHERE id=$1"
		await self._execute(query, message_id)

	async def update_reaction(
		self,
		message_id: str,
		sender_name: str,
		reaction_type: str,
		change: ReactionChange,
	) -> None:
		pool = await get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				current = await conn.fetchval("SELECT reactions FROM messages WHERE id=$1 FOR UPDATE", message_id)
				if current is None:
					return
				reactions = [item for item in current if item.get("sender_name") != sender_name]
				if change is ReactionChange.ADD:
					reactions.append(MessageReaction(sender_name=sender_name, type=reaction_type).model_dump())
				await conn.execute("UPDATE messages SET reactions=$2 WHERE id=$1", message_id, reactions)
