"""Domain exceptions carrying their HTTP translation."""

from __future__ import annotations

from fastapi import status


class HearthError(Exception):
	"""Base class for errors surfaced to API callers."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	detail: str = "bad_request"

	def __init__(self, detail: str | None = None) -> None:
		super().__init__(detail or self.detail)
		if detail:
			self.detail = detail


class ValidationError(HearthError):
	"""Raised for input rejected before any store is touched."""

	status_code = status.HTTP_400_BAD_REQUEST
	detail = "validation_error"


class NotAuthorizedError(HearthError):
	status_code = status.HTTP_401_UNAUTHORIZED
	detail = "not_authorized"


class NotFoundError(HearthError):
	status_code = status.HTTP_404_NOT_FOUND
	detail = "not_found"


class ConflictError(HearthError):
	status_code = status.HTTP_409_CONFLICT
	detail = "conflict"


class UploadFailedError(HearthError):
	"""Blob upload was rejected or the upload service was unreachable."""

	status_code = status.HTTP_400_BAD_REQUEST
	detail = "upload_failed"


class CacheUnavailableError(HearthError):
	"""The volatile store failed; the mutation was aborted before broadcast and enqueue."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "cache_unavailable"


class QueueUnavailableError(HearthError):
	"""The job record could not be written after the cache commit."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	detail = "queue_unavailable"
