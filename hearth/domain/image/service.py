"""Profile pictures, background images and the per-user image list."""

from __future__ import annotations

from typing import List

from hearth.cache.user import UserCache
from hearth.domain.exceptions import NotFoundError
from hearth.domain.image.schemas import ImageRequest
from hearth.domain.models import Image, User
from hearth.domain.readers import read_user
from hearth.infra.auth import AuthenticatedUser
from hearth.infra.ids import new_id
from hearth.infra.uploads import BlobUploader, image_url, is_data_url, parse_image_url
from hearth.queue.registry import QueueSet
from hearth.sockets import namespaces
from hearth.sockets.broadcast import Broadcaster
from hearth.store.image import ImageRepository
from hearth.store.user import UserRepository


class ImageService:
	def __init__(
		self,
		*,
		image_repository: ImageRepository,
		user_cache: UserCache,
		user_repository: UserRepository,
		queues: QueueSet,
		broadcaster: Broadcaster,
		uploader: BlobUploader,
	) -> None:
		self.repo = image_repository
		self.user_cache = user_cache
		self.user_repo = user_repository
		self.queues = queues
		self.broadcaster = broadcaster
		self.uploader = uploader

	async def _update_user(self, principal: AuthenticatedUser, changes: dict) -> User:
		if await read_user(self.user_cache, self.user_repo, principal.id) is None:
			raise NotFoundError("user_not_found")
		user = await self.user_cache.update_fields(principal.id, changes)
		if user is None:
			raise NotFoundError("user_not_found")
		await self.broadcaster.emit(namespaces.USERS, "update user", user.model_dump(mode="json"))
		return user

	async def add_profile_image(self, principal: AuthenticatedUser, payload: ImageRequest) -> User:
		# one public id per user, so a new picture overwrites the old blob
		upload = await self.uploader.upload(payload.image, public_id=principal.id)
		url = image_url(upload.version, upload.public_id)
		user = await self._update_user(principal, {"profile_picture": url})
		image = Image(id=new_id(), user_id=principal.id, img_id=upload.public_id, img_version=upload.version)
		await self.queues.enqueue(
			"image",
			"add_user_profile_image_to_db",
			{"user_id": principal.id, "url": url, "image": image.model_dump(mode="json")},
		)
		return user

	async def add_background_image(self, principal: AuthenticatedUser, payload: ImageRequest) -> User:
		if is_data_url(payload.image):
			upload = await self.uploader.upload(payload.image)
		else:
			upload = parse_image_url(payload.image)
		user = await self._update_user(
			principal,
			{"bg_image_id": upload.public_id, "bg_image_version": upload.version},
		)
		image = Image(
			id=new_id(),
			user_id=principal.id,
			bg_image_id=upload.public_id,
			bg_image_version=upload.version,
		)
		await self.queues.enqueue(
			"image",
			"update_bg_image_in_db",
			{"user_id": principal.id, "image": image.model_dump(mode="json")},
		)
		return user

	async def delete_image(self, principal: AuthenticatedUser, image_id: str) -> None:
		await self.broadcaster.emit(namespaces.IMAGES, "delete image", {"image_id": image_id})
		await self.queues.enqueue("image", "remove_image_from_db", {"image_id": image_id, "user_id": principal.id})

	async def delete_background_image(self, principal: AuthenticatedUser, bg_image_id: str) -> User:
		user = await self._update_user(principal, {"bg_image_id": "", "bg_image_version": ""})
		await self.broadcaster.emit(namespaces.IMAGES, "delete image", {"bg_image_id": bg_image_id})
		await self.queues.enqueue(
			"image",
			"remove_bg_image_from_db",
			{"user_id": principal.id, "bg_image_id": bg_image_id},
		)
		return user

	async def get_images(self, user_id: str) -> List[Image]:
		return await self.repo.list_for_user(user_id)
