"""In-memory stand-ins for the asyncpg repositories and the external collaborators."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from hearth.container import Repositories
from hearth.domain.exceptions import UploadFailedError
from hearth.domain.models import (
    AuthRecord,
    Comment,
    DeleteScope,
    Image,
    Message,
    MessageReaction,
    Notification,
    Post,
    Reaction,
    ReactionChange,
    User,
)
from hearth.infra.uploads import UploadResult
from hearth.sockets.broadcast import Broadcaster, user_room


class FakeAuthRepository:
    def __init__(self) -> None:
        self.records: Dict[str, AuthRecord] = {}
        self.reset_tokens: Dict[str, Tuple[str, datetime]] = {}

    async def create(self, auth: AuthRecord) -> bool:
        if auth.id in self.records:
            return False
        self.records[auth.id] = auth
        return True

    async def get_by_username_or_email(self, username: str, email: str) -> Optional[AuthRecord]:
        for record in self.records.values():
            if record.username.lower() == username.lower() or record.email.lower() == email.lower():
                return record
        return None

    async def get_by_username(self, username: str) -> Optional[AuthRecord]:
        for record in self.records.values():
            if record.username.lower() == username.lower():
                return record
        return None

    async def get_by_email(self, email: str) -> Optional[AuthRecord]:
        for record in self.records.values():
            if record.email.lower() == email.lower():
                return record
        return None

    async def get_by_reset_token(self, token: str, now: datetime) -> Optional[AuthRecord]:
        entry = self.reset_tokens.get(token)
        if entry is None or entry[1] <= now:
            return None
        return self.records.get(entry[0])

    async def set_reset_token(self, auth_id: str, token: str, expires_at: datetime) -> None:
        self.reset_tokens[token] = (auth_id, expires_at)

    async def update_password(self, auth_id: str, password_hash: str) -> None:
        record = self.records[auth_id]
        self.records[auth_id] = record.model_copy(update={"password_hash": password_hash})
        self.reset_tokens = {k: v for k, v in self.reset_tokens.items() if v[0] != auth_id}


class FakeUserRepository:
    def __init__(self) -> None:
        self.users: Dict[str, User] = {}

    async def create(self, user: User) -> bool:
        if user.id in self.users:
            return False
        self.users[user.id] = user
        return True

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return self.users.get(user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        for user in self.users.values():
            if user.username.lower() == username.lower():
                return user
        return None

    async def get_many(self, user_ids: Sequence[str]) -> List[User]:
        return [self.users[user_id] for user_id in user_ids if user_id in self.users]

    def _ranked(self) -> List[User]:
        return sorted(self.users.values(), key=lambda user: int(user.u_id), reverse=True)

    async def list_users(self, exclude_user_id: str | None, skip: int, limit: int) -> List[User]:
        users = [user for user in self._ranked() if user.id != exclude_user_id]
        return users[skip : skip + limit]

    async def count_users(self) -> int:
        return len(self.users)

    async def random_users(self, exclude_ids: Sequence[str], limit: int) -> List[User]:
        return [user for user in self._ranked() if user.id not in exclude_ids][:limit]

    async def update_fields(self, user_id: str, changes: Dict[str, Any]) -> None:
        if user_id in self.users:
            self.users[user_id] = self.users[user_id].model_copy(update=dict(changes))

    async def increment(self, user_id: str, field: str, delta: int) -> None:
        user = self.users.get(user_id)
        if user is not None:
            self.users[user_id] = user.model_copy(update={field: max(getattr(user, field) + delta, 0)})

    async def set_blocked(self, user_id: str, target_id: str, *, blocked: bool) -> None:
        for owner, field, other in ((user_id, "blocked", target_id), (target_id, "blocked_by", user_id)):
            user = self.users.get(owner)
            if user is None:
                continue
            current = [item for item in getattr(user, field) if item != other]
            if blocked:
                current.append(other)
            self.users[owner] = user.model_copy(update={field: current})


class FakePostRepository:
    def __init__(self, users: FakeUserRepository | None = None) -> None:
        self.posts: Dict[str, Post] = {}
        self.users = users

    async def create(self, post: Post) -> bool:
        if post.id in self.posts:
            return False
        self.posts[post.id] = post
        if self.users is not None:
            await self.users.increment(post.user_id, "posts_count", 1)
        return True

    async def get(self, post_id: str) -> Optional[Post]:
        return self.posts.get(post_id)

    def _filtered(self, user_id: str | None, with_images: bool) -> List[Post]:
        posts = [
            post
            for post in self.posts.values()
            if (user_id is None or post.user_id == user_id) and (not with_images or post.has_image)
        ]
        return sorted(posts, key=lambda post: post.created_at, reverse=True)

    async def list_posts(self, skip: int, limit: int, *, user_id: str | None = None, with_images: bool = False) -> List[Post]:
        return self._filtered(user_id, with_images)[skip : skip + limit]

    async def count_posts(self, *, user_id: str | None = None, with_images: bool = False) -> int:
        return len(self._filtered(user_id, with_images))

    async def update(self, post_id: str, changes: Dict[str, Any]) -> None:
        if post_id in self.posts:
            self.posts[post_id] = self.posts[post_id].model_copy(update=dict(changes))

    async def delete(self, post_id: str, author_id: str) -> bool:
        if self.posts.pop(post_id, None) is None:
            return False
        if self.users is not None:
            await self.users.increment(author_id, "posts_count", -1)
        return True


class FakeCommentRepository:
    def __init__(self) -> None:
        self.comments: Dict[str, Comment] = {}
        self.fail_with: Optional[Exception] = None

    async def create(self, comment: Comment) -> bool:
        if self.fail_with is not None:
            raise self.fail_with
        if comment.id in self.comments:
            return False
        self.comments[comment.id] = comment
        return True

    async def list_for_post(self, post_id: str) -> List[Comment]:
        comments = [comment for comment in self.comments.values() if comment.post_id == post_id]
        return sorted(comments, key=lambda comment: comment.created_at, reverse=True)

    async def names_for_post(self, post_id: str) -> dict[str, object]:
        comments = await self.list_for_post(post_id)
        names: List[str] = []
        for comment in comments:
            if comment.username not in names:
                names.append(comment.username)
        return {"count": len(comments), "names": names}

    async def get(self, comment_id: str) -> Optional[Comment]:
        return self.comments.get(comment_id)


class FakeReactionRepository:
    def __init__(self) -> None:
        self.reactions: Dict[Tuple[str, str], Reaction] = {}

    async def save(self, reaction: Reaction) -> bool:
        key = (reaction.post_id, reaction.username)
        existing = self.reactions.get(key)
        if existing is not None and (existing.id == reaction.id or existing.created_at > reaction.created_at):
            return False
        self.reactions[key] = reaction
        return True

    async def remove(self, post_id: str, username: str) -> bool:
        return self.reactions.pop((post_id, username), None) is not None

    async def list_for_post(self, post_id: str) -> List[Reaction]:
        return [reaction for (pid, _), reaction in self.reactions.items() if pid == post_id]

    async def get_for_user(self, post_id: str, username: str) -> Optional[Reaction]:
        return self.reactions.get((post_id, username))

    async def list_by_username(self, username: str) -> List[Reaction]:
        return [reaction for (_, name), reaction in self.reactions.items() if name == username]


class FakeFollowerRepository:
    def __init__(self) -> None:
        self.edges: List[Tuple[str, str]] = []

    async def add(self, follower_id: str, followee_id: str) -> bool:
        if (follower_id, followee_id) in self.edges:
            return False
        self.edges.append((follower_id, followee_id))
        return True

    async def remove(self, follower_id: str, followee_id: str) -> bool:
        if (follower_id, followee_id) not in self.edges:
            return False
        self.edges.remove((follower_id, followee_id))
        return True

    async def list_followers(self, user_id: str) -> List[str]:
        return [follower for follower, followee in self.edges if followee == user_id]

    async def list_following(self, user_id: str) -> List[str]:
        return [followee for follower, followee in self.edges if follower == user_id]


class FakeChatRepository:
    def __init__(self) -> None:
        self.messages: Dict[str, Message] = {}

    async def add_message(self, message: Message) -> bool:
        if message.id in self.messages:
            return False
        self.messages[message.id] = message
        return True

    async def get_conversation_id(self, sender_id: str, receiver_id: str) -> Optional[str]:
        for message in self.messages.values():
            if {message.sender_id, message.receiver_id} == {sender_id, receiver_id}:
                return message.conversation_id
        return None

    async def list_conversations(self, user_id: str) -> List[Message]:
        latest: Dict[str, Message] = {}
        for message in self.messages.values():
            if user_id not in (message.sender_id, message.receiver_id):
                continue
            current = latest.get(message.conversation_id)
            if current is None or message.created_at > current.created_at:
                latest[message.conversation_id] = message
        return sorted(latest.values(), key=lambda message: message.created_at, reverse=True)

    async def list_messages(self, conversation_id: str) -> List[Message]:
        messages = [message for message in self.messages.values() if message.conversation_id == conversation_id]
        return sorted(messages, key=lambda message: message.created_at)

    async def mark_as_read(self, conversation_id: str, reader_id: str) -> None:
        for message_id, message in self.messages.items():
            if message.conversation_id == conversation_id and message.receiver_id == reader_id:
                self.messages[message_id] = message.model_copy(update={"is_read": True})

    async def mark_as_deleted(self, message_id: str, scope: DeleteScope) -> None:
        message = self.messages.get(message_id)
        if message is None:
            return
        update = {"delete_for_me": True}
        if scope is DeleteScope.FOR_EVERYONE:
            update["delete_for_everyone"] = True
        self.messages[message_id] = message.model_copy(update=update)

    async def update_reaction(self, message_id: str, sender_name: str, reaction_type: str, change: ReactionChange) -> None:
        message = self.messages.get(message_id)
        if message is None:
            return
        reactions = [item for item in message.reactions if item.sender_name != sender_name]
        if change is ReactionChange.ADD:
            reactions.append(MessageReaction(sender_name=sender_name, type=reaction_type))
        self.messages[message_id] = message.model_copy(update={"reactions": reactions})


class FakeNotificationRepository:
    def __init__(self) -> None:
        self.notifications: Dict[str, Notification] = {}

    async def create(self, notification: Notification) -> bool:
        if notification.id in self.notifications:
            return False
        self.notifications[notification.id] = notification
        return True

    async def list_for_user(self, user_id: str) -> List[Notification]:
        return [item for item in self.notifications.values() if item.user_to == user_id]

    async def mark_read(self, notification_id: str, user_id: str) -> None:
        item = self.notifications.get(notification_id)
        if item is not None and item.user_to == user_id:
            self.notifications[notification_id] = item.model_copy(update={"read": True})

    async def delete(self, notification_id: str, user_id: str) -> None:
        item = self.notifications.get(notification_id)
        if item is not None and item.user_to == user_id:
            del self.notifications[notification_id]


class FakeImageRepository:
    def __init__(self) -> None:
        self.images: Dict[str, Image] = {}

    async def add(self, image: Image) -> bool:
        if image.id in self.images:
            return False
        self.images[image.id] = image
        return True

    async def list_for_user(self, user_id: str) -> List[Image]:
        return [image for image in self.images.values() if image.user_id == user_id]

    async def delete(self, image_id: str, user_id: str) -> None:
        image = self.images.get(image_id)
        if image is not None and image.user_id == user_id:
            del self.images[image_id]

    async def delete_background(self, user_id: str, bg_image_id: str) -> None:
        self.images = {
            key: image
            for key, image in self.images.items()
            if not (image.user_id == user_id and image.bg_image_id == bg_image_id)
        }


def fake_repositories() -> Repositories:
    users = FakeUserRepository()
    return Repositories(
        auth=FakeAuthRepository(),
        user=users,
        post=FakePostRepository(users),
        comment=FakeCommentRepository(),
        reaction=FakeReactionRepository(),
        follower=FakeFollowerRepository(),
        chat=FakeChatRepository(),
        notification=FakeNotificationRepository(),
        image=FakeImageRepository(),
    )


class RecordingBroadcaster(Broadcaster):
    """Keeps every emit instead of sending it."""

    def __init__(self, log: Optional[List[str]] = None) -> None:
        super().__init__()
        self.events: List[Tuple[str, str, Any, Optional[str]]] = []
        self.log = log

    async def emit(self, namespace: str, event: str, payload: Any, *, room: str | None = None) -> None:
        self.events.append((namespace, event, payload, room))
        if self.log is not None:
            self.log.append("broadcast")

    def names(self) -> List[str]:
        return [event for _, event, _, _ in self.events]

    def to_user(self, user_id: str) -> List[str]:
        return [event for _, event, _, room in self.events if room == user_room(user_id)]


class FakeUploader:
    def __init__(self) -> None:
        self.uploads: List[Tuple[str, Optional[str]]] = []
        self.fail = False

    async def upload(self, file: str, public_id: Optional[str] = None) -> UploadResult:
        if self.fail:
            raise UploadFailedError()
        self.uploads.append((file, public_id))
        return UploadResult(public_id=public_id or f"img{len(self.uploads)}", version="1700000000")


class FakeMailer:
    def __init__(self) -> None:
        self.sent: List[Tuple[str, str, str]] = []

    async def send(self, to_email: str, subject: str, body_html: str) -> None:
        self.sent.append((to_email, subject, body_html))


def make_user(user_id: str, u_id: int, username: str | None = None, **fields: Any) -> User:
    return User(
        id=user_id,
        u_id=str(u_id),
        username=username or user_id,
        email=f"{username or user_id}@example.com",
        **fields,
    )
