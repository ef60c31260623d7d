"""Custom exceptions for feed services."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import status

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - older Starlette builds
	_HTTP_422 = status.HTTP_422_UNPROCESSABLE_ENTITY


class FeedError(Exception):
	"""Base class for feed errors rendered as JSON responses."""

	status_code: int = status.HTTP_400_BAD_REQUEST
	message: str = "Request failed."

	def __init__(self, message: str | None = None, *, data: Optional[Any] = None) -> None:
		super().__init__(message or self.message)
		if message:
			self.message = message
		self.data = data


class ValidationError(FeedError):
	"""Raised when post input fails validation; `data` lists the failing fields."""

	status_code = _HTTP_422
	message = "Validation failed, entered data is incorrect."


class MissingAssetError(FeedError):
	"""Raised when no usable image is available for a post."""

	status_code = _HTTP_422
	message = "No image provided."


class NotFoundError(FeedError):
	status_code = status.HTTP_404_NOT_FOUND
	message = "Could not find post."


class ForbiddenError(FeedError):
	"""Raised when a caller tries to mutate a post they do not own."""

	status_code = status.HTTP_403_FORBIDDEN
	message = "Not authorized."


class StorageError(FeedError):
	"""Raised when the database is unreachable or a write fails."""

	status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
	message = "Storage operation failed."
