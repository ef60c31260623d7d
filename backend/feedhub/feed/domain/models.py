"""Domain models for feed entities."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PostCreator(BaseModel):
	"""The owning user of a post, resolved by join."""

	id: UUID
	name: str

	model_config = ConfigDict(from_attributes=True)


class Post(BaseModel):
	"""Represents a feed post."""

	id: UUID
	title: str
	content: str
	image_url: str
	creator: PostCreator
	created_at: datetime
	updated_at: datetime

	model_config = ConfigDict(from_attributes=True)


class User(BaseModel):
	"""Represents a feed user and the ordered ids of the posts they own."""

	id: UUID
	name: str
	email: Optional[str] = None
	post_ids: list[UUID] = Field(default_factory=list)
	created_at: datetime

	model_config = ConfigDict(from_attributes=True)
