"""Direct messages between two users.

A conversation id is minted the first time two users talk and recorded on
both chat lists. Messages to a receiver who does not have the conversation
open are also announced by email when their settings allow it.
"""

from __future__ import annotations

import logging
from typing import List

from hearth.cache.message import MessageCache
from hearth.cache.user import UserCache
from hearth.domain.chat.schemas import ChatUsersRequest, MarkReadRequest, MessageReactionRequest, MessageRequest
from hearth.domain.exceptions import NotAuthorizedError, NotFoundError, ValidationError
from hearth.domain.models import REACTION_TYPES, DeleteScope, Message, ReactionChange
from hearth.domain.notification import emails
from hearth.domain.readers import read_user
from hearth.infra.auth import AuthenticatedUser
from hearth.infra.ids import new_id
from hearth.infra.uploads import BlobUploader, image_url, is_data_url
from hearth.obs import metrics as obs_metrics
from hearth.queue.registry import QueueSet
from hearth.sockets import namespaces
from hearth.sockets.broadcast import Broadcaster
from hearth.store.chat import ChatRepository
from hearth.store.user import UserRepository

_LOG = logging.getLogger(__name__)


class ChatService:
	def __init__(
		self,
		*,
		message_cache: MessageCache,
		chat_repository: ChatRepository,
		user_cache: UserCache,
		user_repository: UserRepository,
		queues: QueueSet,
		broadcaster: Broadcaster,
		uploader: BlobUploader,
	) -> None:
		self.cache = message_cache
		self.repo = chat_repository
		self.user_cache = user_cache
		self.user_repo = user_repository
		self.queues = queues
		self.broadcaster = broadcaster
		self.uploader = uploader

	async def conversation_id(self, user_id: str, peer_id: str) -> str | None:
		conversation_id = await self.cache.find_conversation_id(user_id, peer_id)
		if conversation_id is None:
			conversation_id = await self.repo.get_conversation_id(user_id, peer_id)
		return conversation_id

	async def send_message(self, principal: AuthenticatedUser, payload: MessageRequest) -> Message:
		if not (payload.body or payload.gif_url or payload.selected_image):
			raise ValidationError("message_is_empty")
		if payload.receiver_id == principal.id:
			raise ValidationError("cannot_message_self")
		selected_image = payload.selected_image
		if selected_image and is_data_url(selected_image):
			upload = await self.uploader.upload(selected_image)
			selected_image = image_url(upload.version, upload.public_id)
		sender = await read_user(self.user_cache, self.user_repo, principal.id)
		proposed = payload.conversation_id or await self.conversation_id(principal.id, payload.receiver_id) or new_id()
		conversation_id = await self.cache.claim_conversation(principal.id, payload.receiver_id, proposed)
		await self.cache.add_chat_list(principal.id, payload.receiver_id, conversation_id)
		await self.cache.add_chat_list(payload.receiver_id, principal.id, conversation_id)
		message = Message(
			id=new_id(),
			conversation_id=conversation_id,
			sender_id=principal.id,
			receiver_id=payload.receiver_id,
			sender_username=principal.username,
			sender_avatar_color=principal.avatar_color,
			sender_profile_picture=sender.profile_picture if sender else "",
			receiver_username=payload.receiver_username,
			receiver_avatar_color=payload.receiver_avatar_color,
			receiver_profile_picture=payload.receiver_profile_picture,
			body=payload.body,
			gif_url=payload.gif_url,
			selected_image=selected_image,
			is_read=payload.is_read,
		)
		await self.cache.add_message(message)
		document = message.model_dump(mode="json")
		for user_id in (principal.id, payload.receiver_id):
			await self.broadcaster.emit_to_user(namespaces.CHAT, "message received", document, user_id)
			await self.broadcaster.emit_to_user(namespaces.CHAT, "chat list", document, user_id)
		await self.queues.enqueue("chat", "add_chat_message_to_db", {"message": document})
		await self._email_if_away(message)
		return message

	async def _email_if_away(self, message: Message) -> None:
		if await self.cache.is_chatting_with(message.receiver_id, message.sender_id):
			return
		receiver = await read_user(self.user_cache, self.user_repo, message.receiver_id)
		if receiver is None or not receiver.notifications.messages:
			return
		subject, html = emails.notification(
			receiver.username,
			f"{message.sender_username} sent you a message",
			"Message Notification",
		)
		await self.queues.enqueue("email", "send_email", {"to": receiver.email, "subject": subject, "html": html})
		_LOG.info("chat.message_email_queued", extra={"conversation_id": message.conversation_id})

	async def add_chat_users(self, payload: ChatUsersRequest) -> List[str]:
		users = await self.cache.add_chat_user(payload.user_one, payload.user_two)
		await self.broadcaster.emit(namespaces.CHAT, "add chat users", users)
		return users

	async def remove_chat_users(self, payload: ChatUsersRequest) -> List[str]:
		users = await self.cache.remove_chat_user(payload.user_one, payload.user_two)
		await self.broadcaster.emit(namespaces.CHAT, "add chat users", users)
		return users

	async def conversation_list(self, principal: AuthenticatedUser) -> List[Message]:
		messages = await self.cache.get_conversation_list(principal.id)
		if messages:
			return messages
		obs_metrics.cold_read("conversations", "fallback")
		return await self.repo.list_conversations(principal.id)

	async def messages(self, principal: AuthenticatedUser, receiver_id: str) -> List[Message]:
		conversation_id = await self.conversation_id(principal.id, receiver_id)
		if conversation_id is None:
			return []
		messages = await self.cache.get_messages(conversation_id)
		if messages:
			return messages
		obs_metrics.cold_read("messages", "fallback")
		return await self.repo.list_messages(conversation_id)

	async def mark_as_read(self, principal: AuthenticatedUser, payload: MarkReadRequest) -> Message | None:
		if principal.id not in (payload.sender_id, payload.receiver_id):
			raise NotAuthorizedError("not_in_conversation")
		peer_id = payload.receiver_id if payload.sender_id == principal.id else payload.sender_id
		conversation_id = await self.conversation_id(principal.id, peer_id)
		if conversation_id is None:
			raise NotFoundError("conversation_not_found")
		message = await self.cache.mark_messages_as_read(conversation_id, principal.id)
		if message is not None:
			document = message.model_dump(mode="json")
			for user_id in (payload.sender_id, payload.receiver_id):
				await self.broadcaster.emit_to_user(namespaces.CHAT, "message read", document, user_id)
		await self.queues.enqueue(
			"chat",
			"mark_messages_as_read_in_db",
			{"conversation_id": conversation_id, "reader_id": principal.id},
		)
		return message

	async def add_message_reaction(self, principal: AuthenticatedUser, payload: MessageReactionRequest) -> Message:
		if payload.type is ReactionChange.ADD and payload.reaction not in REACTION_TYPES:
			raise ValidationError("invalid_reaction_type")
		current = await self.cache.get_messages(payload.conversation_id)
		target = next((item for item in current if item.id == payload.message_id), None)
		if target is None:
			raise NotFoundError("message_not_found")
		if principal.id not in (target.sender_id, target.receiver_id):
			raise NotAuthorizedError("not_in_conversation")
		message = await self.cache.update_message_reaction(
			payload.conversation_id,
			payload.message_id,
			principal.username,
			payload.reaction,
			payload.type,
		)
		if message is None:
			raise NotFoundError("message_not_found")
		document = message.model_dump(mode="json")
		for user_id in (message.sender_id, message.receiver_id):
			await self.broadcaster.emit_to_user(namespaces.CHAT, "message reaction", document, user_id)
		await self.queues.enqueue(
			"chat",
			"update_message_reaction",
			{
				"message_id": message.id,
				"sender_name": principal.username,
				"reaction": payload.reaction,
				"type": payload.type.value,
			},
		)
		return message

	async def mark_as_deleted(
		self,
		principal: AuthenticatedUser,
		message_id: str,
		sender_id: str,
		receiver_id: str,
		scope: DeleteScope,
	) -> Message:
		if principal.id not in (sender_id, receiver_id):
			raise NotAuthorizedError("not_in_conversation")
		conversation_id = await self.conversation_id(sender_id, receiver_id)
		if conversation_id is None:
			raise NotFoundError("conversation_not_found")
		message = await self.cache.mark_message_as_deleted(conversation_id, message_id, scope)
		if message is None:
			raise NotFoundError("message_not_found")
		document = message.model_dump(mode="json")
		for user_id in (sender_id, receiver_id):
			await self.broadcaster.emit_to_user(namespaces.CHAT, "message read", document, user_id)
		await self.queues.enqueue(
			"chat",
			"mark_message_as_deleted_in_db",
			{"message_id": message_id, "scope": scope.value},
		)
		return message
