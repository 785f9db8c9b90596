"""Chat message endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from hearth.api.deps import services
from hearth.container import Container
from hearth.domain.chat.schemas import ChatUsersRequest, MarkReadRequest, MessageReactionRequest, MessageRequest
from hearth.domain.models import DeleteScope
from hearth.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/chat/message", tags=["chat"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def send_message(
	payload: MessageRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	message = await app.chat.send_message(auth_user, payload)
	return {"message": "Message added", "conversation_id": message.conversation_id, "chat": message}


@router.post("/add-chat-users")
async def add_chat_users(
	payload: ChatUsersRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "Users added", "chat_users": await app.chat.add_chat_users(payload)}


@router.post("/remove-chat-users")
async def remove_chat_users(
	payload: ChatUsersRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "Users removed", "chat_users": await app.chat.remove_chat_users(payload)}


@router.get("/conversation-list")
async def conversation_list(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "User conversation list", "list": await app.chat.conversation_list(auth_user)}


@router.get("/user/{receiver_id}")
async def messages(
	receiver_id: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	return {"message": "User chat messages", "messages": await app.chat.messages(auth_user, receiver_id)}


@router.put("/mark-as-read")
async def mark_as_read(
	payload: MarkReadRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.chat.mark_as_read(auth_user, payload)
	return {"message": "Message marked as read"}


@router.put("/reaction")
async def message_reaction(
	payload: MessageReactionRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	message = await app.chat.add_message_reaction(auth_user, payload)
	return {"message": "Message reaction added", "chat": message}


@router.delete("/mark-as-deleted/{message_id}/{sender_id}/{receiver_id}/{scope}")
async def mark_as_deleted(
	message_id: str,
	sender_id: str,
	receiver_id: str,
	scope: DeleteScope,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	app: Container = Depends(services),
) -> dict:
	await app.chat.mark_as_deleted(auth_user, message_id, sender_id, receiver_id, scope)
	return {"message": "Message marked as deleted"}
