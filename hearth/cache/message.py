"""Chat lists, conversation message lists and the online chat-users list."""

from __future__ import annotations

from typing import Callable, List, Optional

from hearth.cache.base import BaseCache
from hearth.cache.codec import dump_json, load_json
from hearth.domain.models import ChatListEntry, DeleteScope, Message, MessageReaction, ReactionChange

CHAT_USERS_KEY = "chat_users"


def chat_list_key(user_id: str) -> str:
	return f"chat_list:{user_id}"


def messages_key(conversation_id: str) -> str:
	return f"messages:{conversation_id}"


def conversation_key(user_one: str, user_two: str) -> str:
	first, second = sorted((user_one, user_two))
	return f"conversation:{first}:{second}"


def _pair(user_one: str, user_two: str) -> str:
	return f"{user_one}:{user_two}"


class MessageCache(BaseCache):
	entity = "message"

	async def claim_conversation(self, user_one: str, user_two: str, conversation_id: str) -> str:
		"""Return the pair's conversation id, storing ``conversation_id`` if none is set.

		Two first messages racing in opposite directions both end up with the
		id that won the ``SET NX``.
		"""
		key = conversation_key(user_one, user_two)
		async with self._guard("claim"):
			if await self.redis.set(key, conversation_id, nx=True):
				return conversation_id
			stored = await self.redis.get(key)
		return stored or conversation_id

	async def add_chat_list(self, sender_id: str, receiver_id: str, conversation_id: str) -> str:
		"""Add ``receiver_id`` to the sender's chat list once.

		Returns the conversation id held by the entry, which is the existing
		one when the receiver was already listed.
		"""
		key = chat_list_key(sender_id)
		entry = dump_json(ChatListEntry(receiver_id=receiver_id, conversation_id=conversation_id))

		async def body(pipe):
			items: List[str] = await pipe.lrange(key, 0, -1)
			for item in items:
				existing = load_json(ChatListEntry, item)
				if existing.receiver_id == receiver_id:
					return existing.conversation_id, False
			pipe.multi()
			pipe.rpush(key, entry)
			return conversation_id, True

		return await self._optimistic([key], body, op="chat_list") or conversation_id

	async def get_chat_list(self, user_id: str) -> List[ChatListEntry]:
		async with self._guard("chat_list"):
			raw = await self.redis.lrange(chat_list_key(user_id), 0, -1)
		return [load_json(ChatListEntry, item) for item in raw]

	async def find_conversation_id(self, sender_id: str, receiver_id: str) -> Optional[str]:
		async with self._guard("claim"):
			claimed = await self.redis.get(conversation_key(sender_id, receiver_id))
		if claimed:
			return claimed
		for entry in await self.get_chat_list(sender_id):
			if entry.receiver_id == receiver_id:
				return entry.conversation_id
		return None

	async def add_message(self, message: Message) -> None:
		async with self._guard("save"):
			await self.redis.rpush(messages_key(message.conversation_id), dump_json(message))

	async def get_messages(self, conversation_id: str) -> List[Message]:
		async with self._guard("range"):
			raw = await self.redis.lrange(messages_key(conversation_id), 0, -1)
		return [load_json(Message, item) for item in raw]

	async def get_conversation_list(self, user_id: str) -> List[Message]:
		"""Last message of every conversation on the user's chat list."""
		entries = await self.get_chat_list(user_id)
		if not entries:
			return []
		async with self._guard("conversations"):
			async with self.redis.pipeline(transaction=False) as pipe:
				for entry in entries:
					pipe.lindex(messages_key(entry.conversation_id), -1)
				replies = await pipe.execute()
		return [load_json(Message, raw) for raw in replies if raw]

	async def add_chat_user(self, user_one: str, user_two: str) -> List[str]:
		pair = _pair(user_one, user_two)

		async def apply(pipe, items: List[str]):
			if pair not in items:
				pipe.rpush(CHAT_USERS_KEY, pair)
				return items + [pair]
			return None

		result = await self._compare_and_swap(CHAT_USERS_KEY, apply, op="chat_users")
		return result if result is not None else await self.get_chat_users()

	async def remove_chat_user(self, user_one: str, user_two: str) -> List[str]:
		pair = _pair(user_one, user_two)
		async with self._guard("chat_users"):
			await self.redis.lrem(CHAT_USERS_KEY, 0, pair)
		return await self.get_chat_users()

	async def get_chat_users(self) -> List[str]:
		async with self._guard("chat_users"):
			return list(await self.redis.lrange(CHAT_USERS_KEY, 0, -1))

	async def is_chatting_with(self, user_id: str, peer_id: str) -> bool:
		"""True when ``user_id`` currently has the conversation with ``peer_id`` open."""
		return _pair(user_id, peer_id) in await self.get_chat_users()

	async def _rewrite(
		self,
		conversation_id: str,
		select: Callable[[Message], bool],
		change: Callable[[Message], Message],
		*,
		op: str,
	) -> Optional[List[Message]]:
		"""Replace every matching message in place; None when nothing matched."""
		key = messages_key(conversation_id)

		async def apply(pipe, items: List[str]):
			changed: List[Message] = []
			for index, raw in enumerate(items):
				message = load_json(Message, raw)
				if not select(message):
					continue
				updated = change(message)
				pipe.lset(key, index, dump_json(updated))
				changed.append(updated)
			return changed or None

		return await self._compare_and_swap(key, apply, op=op)

	async def mark_messages_as_read(self, conversation_id: str, reader_id: str) -> Optional[Message]:
		"""Mark messages addressed to ``reader_id`` as read; returns the last one changed."""
		changed = await self._rewrite(
			conversation_id,
			lambda message: message.receiver_id == reader_id and not message.is_read,
			lambda message: message.model_copy(update={"is_read": True}),
			op="mark_read",
		)
		return changed[-1] if changed else None

	async def mark_message_as_deleted(self, conversation_id: str, message_id: str, scope: DeleteScope) -> Optional[Message]:
		if scope is DeleteScope.FOR_EVERYONE:
			update = {"delete_for_me": True, "delete_for_everyone": True}
		else:
			update = {"delete_for_me": True}
		changed = await self._rewrite(
			conversation_id,
			lambda message: message.id == message_id,
			lambda message: message.model_copy(update=update),
			op="mark_deleted",
		)
		return changed[0] if changed else None

	async def update_message_reaction(
		self,
		conversation_id: str,
		message_id: str,
		sender_name: str,
		reaction_type: str,
		change: ReactionChange,
	) -> Optional[Message]:
		"""Set or clear ``sender_name``'s reaction on one message; None when the message is absent."""

		def apply_reaction(message: Message) -> Message:
			reactions = [item for item in message.reactions if item.sender_name != sender_name]
			if change is ReactionChange.ADD:
				reactions.append(MessageReaction(sender_name=sender_name, type=reaction_type))
			return message.model_copy(update={"reactions": reactions})

		changed = await self._rewrite(
			conversation_id,
			lambda message: message.id == message_id,
			apply_reaction,
			op="reaction",
		)
		return changed[0] if changed else None
