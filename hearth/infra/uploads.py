"""Blob upload client for profile, background, post and message images.

Uploads go to the Cloudinary REST endpoint; callers only see
``UploadResult(public_id, version)`` and ``UploadFailedError``.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from hearth.domain.exceptions import UploadFailedError
from hearth.settings import settings

_LOG = logging.getLogger(__name__)

_API_BASE = "https://api.cloudinary.com/v1_1"
_DELIVERY_BASE = "https://res.cloudinary.com"


@dataclass(slots=True)
class UploadResult:
	public_id: str
	version: str


class BlobUploader(Protocol):
	async def upload(self, file: str, public_id: Optional[str] = None) -> UploadResult:
		...


def is_data_url(value: str) -> bool:
	return value.startswith("data:") and ";base64," in value[:100]


def image_url(version: str, public_id: str) -> str:
	return f"{_DELIVERY_BASE}/{settings.cloud_name}/image/upload/v{version}/{public_id}"


def parse_image_url(url: str) -> UploadResult:
	"""Recover version and public id from a delivery URL."""
	marker = "/upload/"
	_, sep, tail = url.partition(marker)
	parts = tail.split("/") if sep else []
	if len(parts) < 2 or not parts[0].startswith("v"):
		raise UploadFailedError("invalid_image_url")
	return UploadResult(public_id="/".join(parts[1:]), version=parts[0][1:])


def _sign(params: dict[str, str], secret: str) -> str:
	payload = "&".join(f"{key}={params[key]}" for key in sorted(params))
	return hashlib.sha1(f"{payload}{secret}".encode("utf-8")).hexdigest()


class CloudinaryUploader:
	"""Signed uploads over httpx."""

	def __init__(
		self,
		*,
		cloud_name: str | None = None,
		api_key: str | None = None,
		api_secret: str | None = None,
		timeout: float | None = None,
		client: httpx.AsyncClient | None = None,
	) -> None:
		self.cloud_name = cloud_name or settings.cloud_name
		self.api_key = api_key or settings.cloud_api_key
		self.api_secret = api_secret or settings.cloud_api_secret
		self._client = client or httpx.AsyncClient(timeout=timeout or settings.cloud_upload_timeout_seconds)

	async def upload(self, file: str, public_id: Optional[str] = None) -> UploadResult:
		params = {"timestamp": str(int(time.time()))}
		if public_id:
			params.update({"public_id": public_id, "overwrite": "true", "invalidate": "true"})
		form = dict(params, api_key=self.api_key, signature=_sign(params, self.api_secret), file=file)
		url = f"{_API_BASE}/{self.cloud_name}/image/upload"
		try:
			response = await self._client.post(url, data=form)
		except httpx.HTTPError as exc:
			_LOG.warning("uploads.request_failed", extra={"error": str(exc)})
			raise UploadFailedError() from exc
		if response.status_code >= 400:
			_LOG.warning("uploads.rejected", extra={"status": response.status_code})
			raise UploadFailedError()
		data = response.json()
		return UploadResult(public_id=str(data["public_id"]), version=str(data["version"]))

	async def aclose(self) -> None:
		await self._client.aclose()
