"""Lifecycle events broadcast to connected clients after a commit."""

from __future__ import annotations

from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel

from feedhub.feed.domain import models

Action = Literal["create", "update", "delete"]


def post_payload(post: models.Post) -> dict[str, Any]:
	return {
		"id": str(post.id),
		"title": post.title,
		"content": post.content,
		"image_url": post.image_url,
		"creator": {"id": str(post.creator.id), "name": post.creator.name},
		"created_at": post.created_at.isoformat(),
		"updated_at": post.updated_at.isoformat(),
	}


class LifecycleEvent(BaseModel):
	"""Ephemeral notification; never persisted or replayed."""

	action: Action
	post: Optional[models.Post] = None
	post_id: Optional[UUID] = None

	@classmethod
	def created(cls, post: models.Post) -> "LifecycleEvent":
		return cls(action="create", post=post)

	@classmethod
	def updated(cls, post: models.Post) -> "LifecycleEvent":
		return cls(action="update", post=post)

	@classmethod
	def deleted(cls, post_id: UUID) -> "LifecycleEvent":
		return cls(action="delete", post_id=post_id)

	def to_payload(self) -> dict[str, Any]:
		if self.action == "delete":
			return {"action": self.action, "post": str(self.post_id)}
		assert self.post is not None
		return {"action": self.action, "post": post_payload(self.post)}
