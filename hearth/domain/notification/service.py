"""Notification reads, updates and worker-side delivery."""

from __future__ import annotations

import logging
from typing import List

from hearth.cache.user import UserCache
from hearth.domain.exceptions import NotFoundError
from hearth.domain.models import Notification
from hearth.domain.notification import emails
from hearth.domain.readers import read_user
from hearth.infra.auth import AuthenticatedUser
from hearth.queue.registry import QueueSet
from hearth.sockets import namespaces
from hearth.sockets.broadcast import Broadcaster
from hearth.store.notification import NotificationRepository
from hearth.store.user import UserRepository

_LOG = logging.getLogger(__name__)

# notification_type -> User.notifications flag
SETTING_FOR_TYPE = {
	"comments": "comments",
	"reactions": "reactions",
	"follows": "follows",
	"messages": "messages",
}


class NotificationService:
	def __init__(
		self,
		*,
		repository: NotificationRepository,
		user_cache: UserCache,
		user_repository: UserRepository,
		queues: QueueSet,
		broadcaster: Broadcaster,
	) -> None:
		self.repo = repository
		self.user_cache = user_cache
		self.user_repo = user_repository
		self.queues = queues
		self.broadcaster = broadcaster

	async def list_notifications(self, user: AuthenticatedUser) -> List[Notification]:
		return await self.repo.list_for_user(user.id)

	async def mark_read(self, user: AuthenticatedUser, notification_id: str) -> None:
		if not notification_id:
			raise NotFoundError("notification_not_found")
		await self.broadcaster.emit_to_user(
			namespaces.NOTIFICATIONS, "update notification", {"id": notification_id}, user.id
		)
		await self.queues.enqueue(
			"notification", "update_notification", {"notification_id": notification_id, "user_id": user.id}
		)

	async def delete(self, user: AuthenticatedUser, notification_id: str) -> None:
		if not notification_id:
			raise NotFoundError("notification_not_found")
		await self.broadcaster.emit_to_user(
			namespaces.NOTIFICATIONS, "delete notification", {"id": notification_id}, user.id
		)
		await self.queues.enqueue(
			"notification", "delete_notification", {"notification_id": notification_id, "user_id": user.id}
		)

	async def deliver(self, notification: Notification, *, email_header: str) -> bool:
		"""Persist, push and email a notification if the recipient wants it.

		Ids are derived from the triggering entity, so redelivery of the same
		job finds the row already present and does nothing.
		"""
		if notification.user_to == notification.user_from:
			return False
		recipient = await read_user(self.user_cache, self.user_repo, notification.user_to)
		if recipient is None:
			_LOG.info("notification.recipient_missing", extra={"user_to": notification.user_to})
			return False
		setting = SETTING_FOR_TYPE.get(notification.notification_type)
		if setting is not None and not getattr(recipient.notifications, setting):
			return False
		if not await self.repo.create(notification):
			return False
		await self.broadcaster.emit_to_user(
			namespaces.NOTIFICATIONS,
			"insert notification",
			notification.model_dump(mode="json"),
			notification.user_to,
		)
		subject, html = emails.notification(recipient.username, notification.message, email_header)
		await self.queues.enqueue("email", "send_email", {"to": recipient.email, "subject": subject, "html": html})
		return True
