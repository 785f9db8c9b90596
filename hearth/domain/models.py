"""Entity records shared by the caches, the durable repositories and the API.

Every record is keyed by an id minted in the request handler. The same
shape is written to Redis, carried in job payloads and persisted to
PostgreSQL.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field

REACTION_TYPES: tuple[str, ...] = ("like", "love", "happy", "sad", "wow", "angry")


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


def empty_reactions() -> Dict[str, int]:
	return {name: 0 for name in REACTION_TYPES}


class _Record(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="ignore")

	@classmethod
	def from_record(cls, record: Mapping[str, Any]):
		return cls.model_validate(dict(record))


class BlockAction(str, Enum):
	BLOCK = "block"
	UNBLOCK = "unblock"


class DeleteScope(str, Enum):
	FOR_ME = "deleteForMe"
	FOR_EVERYONE = "deleteForEveryone"


class ReactionChange(str, Enum):
	ADD = "add"
	REMOVE = "remove"


class NotificationSettings(_Record):
	messages: bool = True
	reactions: bool = True
	comments: bool = True
	follows: bool = True


class SocialLinks(_Record):
	facebook: str = ""
	instagram: str = ""
	twitter: str = ""
	youtube: str = ""


class AuthRecord(_Record):
	id: str
	u_id: str
	username: str
	email: str
	password_hash: str
	avatar_color: str = ""
	created_at: datetime = Field(default_factory=utcnow)


class User(_Record):
	id: str
	u_id: str
	username: str
	email: str
	avatar_color: str = ""
	profile_picture: str = ""
	posts_count: int = 0
	followers_count: int = 0
	following_count: int = 0
	blocked: List[str] = Field(default_factory=list)
	blocked_by: List[str] = Field(default_factory=list)
	notifications: NotificationSettings = Field(default_factory=NotificationSettings)
	social: SocialLinks = Field(default_factory=SocialLinks)
	work: str = ""
	school: str = ""
	location: str = ""
	quote: str = ""
	bg_image_id: str = ""
	bg_image_version: str = ""
	created_at: datetime = Field(default_factory=utcnow)


class Post(_Record):
	id: str
	user_id: str
	username: str
	email: str = ""
	avatar_color: str = ""
	profile_picture: str = ""
	post: str = ""
	bg_color: str = ""
	feelings: str = ""
	privacy: str = ""
	gif_url: str = ""
	img_id: str = ""
	img_version: str = ""
	comments_count: int = 0
	reactions: Dict[str, int] = Field(default_factory=empty_reactions)
	created_at: datetime = Field(default_factory=utcnow)

	@property
	def has_image(self) -> bool:
		return bool((self.img_id and self.img_version) or self.gif_url)


class Comment(_Record):
	id: str
	post_id: str
	user_to: str = ""
	username: str
	avatar_color: str = ""
	profile_picture: str = ""
	comment: str
	created_at: datetime = Field(default_factory=utcnow)


class Reaction(_Record):
	id: str
	post_id: str
	type: str
	username: str
	avatar_color: str = ""
	profile_picture: str = ""
	user_to: str = ""
	created_at: datetime = Field(default_factory=utcnow)


class ChatListEntry(_Record):
	receiver_id: str
	conversation_id: str


class MessageReaction(_Record):
	sender_name: str
	type: str


class Message(_Record):
	id: str
	conversation_id: str
	sender_id: str
	receiver_id: str
	sender_username: str = ""
	sender_avatar_color: str = ""
	sender_profile_picture: str = ""
	receiver_username: str = ""
	receiver_avatar_color: str = ""
	receiver_profile_picture: str = ""
	body: str = ""
	gif_url: str = ""
	selected_image: str = ""
	is_read: bool = False
	delete_for_me: bool = False
	delete_for_everyone: bool = False
	reactions: List[MessageReaction] = Field(default_factory=list)
	created_at: datetime = Field(default_factory=utcnow)


class Notification(_Record):
	id: str
	user_to: str
	user_from: str
	username: str = ""
	avatar_color: str = ""
	profile_picture: str = ""
	message: str
	notification_type: str
	entity_id: str = ""
	created_item_id: str = ""
	comment: str = ""
	reaction: str = ""
	post: str = ""
	img_id: str = ""
	img_version: str = ""
	gif_url: str = ""
	read: bool = False
	created_at: datetime = Field(default_factory=utcnow)


class Image(_Record):
	id: str
	user_id: str
	img_id: str = ""
	img_version: str = ""
	bg_image_id: str = ""
	bg_image_version: str = ""
	created_at: datetime = Field(default_factory=utcnow)
