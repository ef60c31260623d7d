"""Pydantic DTOs for the feed HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from feedhub.feed.domain import models


class CreatorResponse(BaseModel):
	id: UUID
	name: str


class PostResponse(BaseModel):
	id: UUID
	title: str
	content: str
	image_url: str
	creator: CreatorResponse
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_model(cls, post: models.Post) -> "PostResponse":
		return cls(
			id=post.id,
			title=post.title,
			content=post.content,
			image_url=post.image_url,
			creator=CreatorResponse(id=post.creator.id, name=post.creator.name),
			created_at=post.created_at,
			updated_at=post.updated_at,
		)


class PostListResponse(BaseModel):
	message: str
	posts: list[PostResponse]
	total_items: int
	page: int
	per_page: int


class PostEnvelope(BaseModel):
	message: str
	post: PostResponse


class PostCreatedEnvelope(PostEnvelope):
	creator: CreatorResponse


class MessageResponse(BaseModel):
	message: str


class PostUpdateRequest(BaseModel):
	"""JSON body for updates that keep or swap the image by reference."""

	title: Optional[str] = None
	content: Optional[str] = None
	image_url: Optional[str] = Field(
		default=None,
		validation_alias=AliasChoices("image_url", "imageUrl", "image"),
	)
