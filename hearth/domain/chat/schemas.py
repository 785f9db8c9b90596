from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from hearth.domain.models import ReactionChange


class MessageRequest(BaseModel):
	conversation_id: Optional[str] = None
	receiver_id: str = Field(min_length=1)
	receiver_username: str = ""
	receiver_avatar_color: str = ""
	receiver_profile_picture: str = ""
	body: str = ""
	gif_url: str = ""
	selected_image: str = ""
	is_read: bool = False


class ChatUsersRequest(BaseModel):
	user_one: str = Field(min_length=1)
	user_two: str = Field(min_length=1)


class MarkReadRequest(BaseModel):
	sender_id: str = Field(min_length=1)
	receiver_id: str = Field(min_length=1)


class MessageReactionRequest(BaseModel):
	conversation_id: str = Field(min_length=1)
	message_id: str = Field(min_length=1)
	reaction: str = ""
	type: ReactionChange = ReactionChange.ADD
