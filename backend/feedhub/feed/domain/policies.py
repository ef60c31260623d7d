"""Authorization and input policies for post lifecycle operations."""

from __future__ import annotations

from typing import Optional

from feedhub.feed.domain import models
from feedhub.feed.domain.exceptions import ForbiddenError, ValidationError
from feedhub.infra.auth import AuthenticatedUser
from feedhub.settings import settings


def can_mutate(user: AuthenticatedUser, post: models.Post) -> bool:
	"""Only the creator of a post may update or delete it."""
	return str(post.creator.id) == str(user.id)


def assert_can_mutate(user: AuthenticatedUser, post: models.Post) -> None:
	if not can_mutate(user, post):
		raise ForbiddenError()


def clean_post_input(title: Optional[str], content: Optional[str]) -> tuple[str, str]:
	"""Trim title/content and check their lengths.

	Returns the trimmed values or raises ValidationError whose data lists every
	failing field.
	"""
	title_value = (title or "").strip()
	content_value = (content or "").strip()
	errors: list[dict[str, object]] = []
	if len(title_value) < max(1, settings.post_title_min_length):
		errors.append(
			{
				"field": "title",
				"message": f"Title must be at least {max(1, settings.post_title_min_length)} characters long.",
				"value": title_value,
			}
		)
	if len(content_value) < max(1, settings.post_content_min_length):
		errors.append(
			{
				"field": "content",
				"message": f"Content must be at least {max(1, settings.post_content_min_length)} characters long.",
				"value": content_value,
			}
		)
	if errors:
		raise ValidationError(data=errors)
	return title_value, content_value


def ensure_page(page: int, per_page: int) -> None:
	errors: list[dict[str, object]] = []
	if page < 1:
		errors.append({"field": "page", "message": "Page must be 1 or greater.", "value": page})
	if per_page < 1 or per_page > settings.feed_max_page_size:
		errors.append(
			{
				"field": "per_page",
				"message": f"Page size must be between 1 and {settings.feed_max_page_size}.",
				"value": per_page,
			}
		)
	if errors:
		raise ValidationError(data=errors)


def ensure_current_image(post: models.Post, image_url: str) -> None:
	"""An update without a new upload may only keep the post's own image."""
	if image_url != post.image_url:
		raise ValidationError(
			data=[
				{
					"field": "image",
					"message": "Image must be a new upload or the post's current image.",
					"value": image_url,
				}
			]
		)
