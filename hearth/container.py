"""Process-wide wiring of caches, repositories, queues and services.

The entry point builds one ``Container`` in its lifespan; tests build their
own around fakeredis and in-memory repositories and install it with
``set_container``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from hearth.cache.comment import CommentCache
from hearth.cache.follower import FollowerCache
from hearth.cache.message import MessageCache
from hearth.cache.post import PostCache
from hearth.cache.reaction import ReactionCache
from hearth.cache.user import UserCache
from hearth.domain.auth.service import AuthService
from hearth.domain.chat.service import ChatService
from hearth.domain.comment.service import CommentService
from hearth.domain.follower.service import FollowerService
from hearth.domain.image.service import ImageService
from hearth.domain.notification.service import NotificationService
from hearth.domain.post.service import PostService
from hearth.domain.reaction.service import ReactionService
from hearth.domain.user.service import UserService
from hearth.infra.mailer import Mailer, SMTPMailer
from hearth.infra.redis import RedisProxy, redis_client
from hearth.infra.uploads import BlobUploader, CloudinaryUploader
from hearth.queue.registry import QueueSet, build_queues
from hearth.sockets.broadcast import Broadcaster
from hearth.store.auth import AuthRepository
from hearth.store.chat import ChatRepository
from hearth.store.comment import CommentRepository
from hearth.store.follower import FollowerRepository
from hearth.store.image import ImageRepository
from hearth.store.notification import NotificationRepository
from hearth.store.post import PostRepository
from hearth.store.reaction import ReactionRepository
from hearth.store.user import UserRepository
from hearth.workers.auth_worker import AuthWorker
from hearth.workers.chat_worker import ChatWorker
from hearth.workers.comment_worker import CommentWorker
from hearth.workers.email_worker import EmailWorker
from hearth.workers.follower_worker import BlockedWorker, FollowerWorker
from hearth.workers.image_worker import ImageWorker
from hearth.workers.notification_worker import NotificationWorker
from hearth.workers.post_worker import PostWorker
from hearth.workers.reaction_worker import ReactionWorker
from hearth.workers.user_worker import UserWorker


@dataclass
class Repositories:
	auth: AuthRepository = field(default_factory=AuthRepository)
	user: UserRepository = field(default_factory=UserRepository)
	post: PostRepository = field(default_factory=PostRepository)
	comment: CommentRepository = field(default_factory=CommentRepository)
	reaction: ReactionRepository = field(default_factory=ReactionRepository)
	follower: FollowerRepository = field(default_factory=FollowerRepository)
	chat: ChatRepository = field(default_factory=ChatRepository)
	notification: NotificationRepository = field(default_factory=NotificationRepository)
	image: ImageRepository = field(default_factory=ImageRepository)


@dataclass
class Caches:
	user: UserCache
	post: PostCache
	comment: CommentCache
	reaction: ReactionCache
	follower: FollowerCache
	message: MessageCache


@dataclass
class Container:
	redis: RedisProxy
	caches: Caches
	repositories: Repositories
	queues: QueueSet
	broadcaster: Broadcaster
	uploader: BlobUploader
	mailer: Mailer
	auth: AuthService
	users: UserService
	posts: PostService
	comments: CommentService
	reactions: ReactionService
	followers: FollowerService
	chat: ChatService
	images: ImageService
	notifications: NotificationService


def register_workers(container: Container) -> None:
	"""Attach one handler per job type to the matching queue."""
	repos = container.repositories
	queues = container.queues
	AuthWorker(repository=repos.auth).register(queues["auth"])
	UserWorker(repository=repos.user).register(queues["user"])
	PostWorker(repository=repos.post).register(queues["post"])
	CommentWorker(notifications=container.notifications, repository=repos.comment).register(queues["comment"])
	ReactionWorker(notifications=container.notifications, repository=repos.reaction).register(queues["reaction"])
	FollowerWorker(notifications=container.notifications, repository=repos.follower).register(queues["follower"])
	BlockedWorker(repository=repos.user).register(queues["blocked"])
	ChatWorker(repository=repos.chat).register(queues["chat"])
	NotificationWorker(repository=repos.notification).register(queues["notification"])
	ImageWorker(repository=repos.image, user_repository=repos.user).register(queues["image"])
	EmailWorker(mailer=container.mailer).register(queues["email"])


def build_container(
	redis: RedisProxy | None = None,
	*,
	repositories: Repositories | None = None,
	broadcaster: Broadcaster | None = None,
	uploader: BlobUploader | None = None,
	mailer: Mailer | None = None,
	queues: QueueSet | None = None,
) -> Container:
	redis = redis or redis_client
	repos = repositories or Repositories()
	caches = Caches(
		user=UserCache(redis),
		post=PostCache(redis),
		comment=CommentCache(redis),
		reaction=ReactionCache(redis),
		follower=FollowerCache(redis),
		message=MessageCache(redis),
	)
	queues = queues or build_queues(redis)
	broadcaster = broadcaster or Broadcaster()
	uploader = uploader or CloudinaryUploader()
	mailer = mailer or SMTPMailer()

	notifications = NotificationService(
		repository=repos.notification,
		user_cache=caches.user,
		user_repository=repos.user,
		queues=queues,
		broadcaster=broadcaster,
	)
	container = Container(
		redis=redis,
		caches=caches,
		repositories=repos,
		queues=queues,
		broadcaster=broadcaster,
		uploader=uploader,
		mailer=mailer,
		auth=AuthService(
			auth_repository=repos.auth,
			user_repository=repos.user,
			user_cache=caches.user,
			queues=queues,
			uploader=uploader,
		),
		users=UserService(
			user_cache=caches.user,
			user_repository=repos.user,
			follower_cache=caches.follower,
			follower_repository=repos.follower,
			post_cache=caches.post,
			post_repository=repos.post,
			queues=queues,
			broadcaster=broadcaster,
		),
		posts=PostService(
			post_cache=caches.post,
			post_repository=repos.post,
			user_cache=caches.user,
			user_repository=repos.user,
			queues=queues,
			broadcaster=broadcaster,
			uploader=uploader,
		),
		comments=CommentService(
			comment_cache=caches.comment,
			comment_repository=repos.comment,
			queues=queues,
			broadcaster=broadcaster,
		),
		reactions=ReactionService(
			reaction_cache=caches.reaction,
			reaction_repository=repos.reaction,
			queues=queues,
			broadcaster=broadcaster,
		),
		followers=FollowerService(
			follower_cache=caches.follower,
			follower_repository=repos.follower,
			user_cache=caches.user,
			user_repository=repos.user,
			queues=queues,
			broadcaster=broadcaster,
		),
		chat=ChatService(
			message_cache=caches.message,
			chat_repository=repos.chat,
			user_cache=caches.user,
			user_repository=repos.user,
			queues=queues,
			broadcaster=broadcaster,
			uploader=uploader,
		),
		images=ImageService(
			image_repository=repos.image,
			user_cache=caches.user,
			user_repository=repos.user,
			queues=queues,
			broadcaster=broadcaster,
			uploader=uploader,
		),
		notifications=notifications,
	)
	register_workers(container)
	return container


_container: Optional[Container] = None


def get_container() -> Container:
	global _container
	if _container is None:
		_container = build_container()
	return _container


def set_container(container: Optional[Container]) -> None:
	global _container
	_container = container


__all__ = ["Caches", "Container", "Repositories", "build_container", "get_container", "register_workers", "set_container"]
