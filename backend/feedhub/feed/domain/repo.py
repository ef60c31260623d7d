"""Async repositories for posts and users."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Mapping
from uuid import UUID, uuid4

import asyncpg

from feedhub.feed.domain import models
from feedhub.feed.domain.exceptions import StorageError
from feedhub.infra.postgres import get_pool
from feedhub.obs import logging as obs_logging
from feedhub.obs import metrics as obs_metrics

logger = obs_logging.get_logger("feedhub.feed.repo")

_POST_COLUMNS = "p.id, p.title, p.content, p.image_url, p.creator_id, p.created_at, p.updated_at"
_USER_COLUMNS = "id, name, email, post_ids, created_at"


@asynccontextmanager
async def _storage(operation: str) -> AsyncIterator[None]:
	"""Translate driver and connection failures into StorageError."""
	try:
		yield
	except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as exc:
		obs_metrics.inc_storage_error(operation)
		logger.error("storage_error", extra={"operation": operation, "error": type(exc).__name__})
		raise StorageError() from exc


def _post_from_record(record: Mapping[str, object]) -> models.Post:
	data = dict(record)
	creator = models.PostCreator(id=data.pop("creator_id"), name=data.pop("creator_name"))
	return models.Post(creator=creator, **data)


def _user_from_record(record: Mapping[str, object]) -> models.User:
	data = dict(record)
	data["post_ids"] = list(data.get("post_ids") or [])
	return models.User.model_validate(data)


class PostsRepository:
	"""Data access for feed_post rows, always joined with their creator."""

	async def count_posts(self) -> int:
		async with _storage("count_posts"):
			pool = await get_pool()
			async with pool.acquire() as conn:
				total = await conn.fetchval("SELECT COUNT(*) FROM feed_post")
		return int(total or 0)

	async def list_posts(self, *, offset: int, limit: int) -> list[models.Post]:
		async with _storage("list_posts"):
			pool = await get_pool()
			async with pool.acquire() as conn:
				records = await conn.fetch(
					f"""
					SELECT {_POST_COLUMNS}, u.name AS creator_name
					FROM feed_post p
					JOIN feed_user u ON u.id = p.creator_id
					ORDER BY p.created_at DESC, p.id DESC
					OFFSET $1 LIMIT $2
					""",
					offset,
					limit,
				)
		return [_post_from_record(record) for record in records]

	async def get_post(self, post_id: UUID) -> models.Post | None:
		async with _storage("get_post"):
			pool = await get_pool()
			async with pool.acquire() as conn:
				record = await conn.fetchrow(
					f"""
					SELECT {_POST_COLUMNS}, u.name AS creator_name
					FROM feed_post p
					JOIN feed_user u ON u.id = p.creator_id
					WHERE p.id = $1
					""",
					post_id,
				)
		return _post_from_record(record) if record else None

	async def create_post(
		self,
		*,
		title: str,
		content: str,
		image_url: str,
		creator_id: UUID,
	) -> models.Post:
		async with _storage("create_post"):
			pool = await get_pool()
			async with pool.acquire() as conn:
				record = await conn.fetchrow(
					f"""
					WITH p AS (
						INSERT INTO feed_post (id, title, content, image_url, creator_id)
						VALUES ($1, $2, $3, $4, $5)
						RETURNING *
					)
					SELECT {_POST_COLUMNS}, u.name AS creator_name
					FROM p
					JOIN feed_user u ON u.id = p.creator_id
					""",
					uuid4(),
					title,
					content,
					image_url,
					creator_id,
				)
		if record is None:
			raise StorageError()
		return _post_from_record(record)

	async def update_post(
		self,
		post_id: UUID,
		*,
		title: str,
		content: str,
		image_url: str,
	) -> models.Post | None:
		async with _storage("update_post"):
			pool = await get_pool()
			async with pool.acquire() as conn:
				record = await conn.fetchrow(
					f"""
					WITH p AS (
						UPDATE feed_post
						SET title = $2, content = $3, image_url = $4, updated_at = NOW()
						WHERE id = $1
						RETURNING *
					)
					SELECT {_POST_COLUMNS}, u.name AS creator_name
					FROM p
					JOIN feed_user u ON u.id = p.creator_id
					""",
					post_id,
					title,
					content,
					image_url,
				)
		return _post_from_record(record) if record else None

	async def delete_post(self, post_id: UUID) -> bool:
		async with _storage("delete_post"):
			pool = await get_pool()
			async with pool.acquire() as conn:
				deleted = await conn.fetchval("DELETE FROM feed_post WHERE id = $1 RETURNING id", post_id)
		return deleted is not None


class UsersRepository:
	"""Data access for feed_user rows and their owned post references.

	Reference updates are single statements, so concurrent appends for the
	same user do not overwrite each other.
	"""

	async def get_user(self, user_id: UUID) -> models.User | None:
		async with _storage("get_user"):
			pool = await get_pool()
			async with pool.acquire() as conn:
				record = await conn.fetchrow(f"SELECT {_USER_COLUMNS} FROM feed_user WHERE id = $1", user_id)
		return _user_from_record(record) if record else None

	async def append_post(self, user_id: UUID, post_id: UUID) -> models.User | None:
		async with _storage("append_user_post"):
			pool = await get_pool()
			async with pool.acquire() as conn:
				record = await conn.fetchrow(
					f"""
					UPDATE feed_user
					SET post_ids = array_append(post_ids, $2)
					WHERE id = $1
					RETURNING {_USER_COLUMNS}
					""",
					user_id,
					post_id,
				)
		return _user_from_record(record) if record else None

	async def remove_post(self, user_id: UUID, post_id: UUID) -> models.User | None:
		async with _storage("remove_user_post"):
			pool = await get_pool()
			async with pool.acquire() as conn:
				record = await conn.fetchrow(
					f"""
					UPDATE feed_user
					SET post_ids = array_remove(post_ids, $2)
					WHERE id = $1
					RETURNING {_USER_COLUMNS}
					""",
					user_id,
					post_id,
				)
		return _user_from_record(record) if record else None
