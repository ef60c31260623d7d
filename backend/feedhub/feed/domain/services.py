"""Service layer orchestrating the post lifecycle."""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from starlette.datastructures import UploadFile

from feedhub.feed.domain import models, policies, repo as repo_module
from feedhub.feed.domain.events import LifecycleEvent
from feedhub.feed.domain.exceptions import MissingAssetError, NotFoundError, StorageError
from feedhub.feed.infra.assets import AssetStore
from feedhub.feed.sockets import broadcaster as broadcaster_module
from feedhub.infra.auth import AuthenticatedUser
from feedhub.obs import logging as obs_logging
from feedhub.obs import metrics as obs_metrics
from feedhub.settings import settings

logger = obs_logging.get_logger("feedhub.feed.service")


def _as_uuid(value: str | UUID) -> UUID | None:
	if isinstance(value, UUID):
		return value
	try:
		return UUID(str(value))
	except ValueError:
		return None


class PostsService:
	"""Create, read, update and delete posts and announce every committed change.

	User.post_ids and Post.creator are kept in sync by two separate writes. A
	failure between them is reported as StorageError and is not rolled back.
	"""

	def __init__(
		self,
		posts: repo_module.PostsRepository | None = None,
		users: repo_module.UsersRepository | None = None,
		assets: AssetStore | None = None,
		broadcaster: broadcaster_module.Broadcaster | None = None,
	) -> None:
		self.posts = posts or repo_module.PostsRepository()
		self.users = users or repo_module.UsersRepository()
		self.assets = assets or AssetStore()
		self._broadcaster = broadcaster

	# ------------------------------------------------------------------
	# Helpers

	@property
	def broadcaster(self) -> broadcaster_module.Broadcaster:
		if self._broadcaster is not None:
			return self._broadcaster
		return broadcaster_module.get_broadcaster()

	async def _publish(self, event: LifecycleEvent) -> None:
		obs_metrics.inc_post_lifecycle(event.action)
		await self.broadcaster.publish(event)

	async def _require_post(self, post_id: UUID) -> models.Post:
		post = await self.posts.get_post(post_id)
		if post is None:
			raise NotFoundError()
		return post

	# ------------------------------------------------------------------
	# Reads

	async def list_posts(self, *, page: int = 1, per_page: Optional[int] = None) -> tuple[list[models.Post], int]:
		"""Return one page of posts, newest first, and the total post count."""
		size = per_page if per_page is not None else settings.feed_page_size
		policies.ensure_page(page, size)
		total = await self.posts.count_posts()
		posts = await self.posts.list_posts(offset=(page - 1) * size, limit=size)
		return posts, total

	async def get_post(self, post_id: UUID) -> models.Post:
		return await self._require_post(post_id)

	# ------------------------------------------------------------------
	# Mutations

	async def create_post(
		self,
		user: AuthenticatedUser,
		*,
		title: Optional[str],
		content: Optional[str],
		image: Optional[UploadFile],
	) -> models.Post:
		title_value, content_value = policies.clean_post_input(title, content)
		if image is None:
			raise MissingAssetError()
		user_id = _as_uuid(user.id)
		creator = await self.users.get_user(user_id) if user_id else None
		if creator is None:
			raise NotFoundError("Could not find user.")
		image_url = await self.assets.store(image)
		if image_url is None:
			raise MissingAssetError()

		try:
			post = await self.posts.create_post(
				title=title_value,
				content=content_value,
				image_url=image_url,
				creator_id=creator.id,
			)
		except StorageError:
			await self.assets.delete(image_url)
			raise
		updated_user = await self.users.append_post(creator.id, post.id)
		if updated_user is None:
			logger.error("user_post_link_failed", extra={"post_id": str(post.id), "user_id": str(creator.id)})
			raise StorageError()

		logger.info("post_created", extra={"post_id": str(post.id)})
		await self._publish(LifecycleEvent.created(post))
		return post

	async def update_post(
		self,
		user: AuthenticatedUser,
		post_id: UUID,
		*,
		title: Optional[str],
		content: Optional[str],
		image: Optional[UploadFile] = None,
		image_url: Optional[str] = None,
	) -> models.Post:
		title_value, content_value = policies.clean_post_input(title, content)
		kept_url = (image_url or "").strip() or None
		if image is None and kept_url is None:
			raise MissingAssetError("No file picked.")
		post = await self._require_post(post_id)
		policies.assert_can_mutate(user, post)

		stored_url = await self.assets.store(image) if image is not None else None
		if stored_url is None:
			if kept_url is None:
				raise MissingAssetError("No file picked.")
			policies.ensure_current_image(post, kept_url)
		new_url = stored_url or post.image_url

		try:
			updated = await self.posts.update_post(
				post_id,
				title=title_value,
				content=content_value,
				image_url=new_url,
			)
		except StorageError:
			if stored_url is not None:
				await self.assets.delete(stored_url)
			raise
		if updated is None:
			if stored_url is not None:
				await self.assets.delete(stored_url)
			raise NotFoundError()
		if stored_url is not None and stored_url != post.image_url:
			await self.assets.delete(post.image_url)

		logger.info("post_updated", extra={"post_id": str(post_id)})
		await self._publish(LifecycleEvent.updated(updated))
		return updated

	async def delete_post(self, user: AuthenticatedUser, post_id: UUID) -> None:
		post = await self._require_post(post_id)
		policies.assert_can_mutate(user, post)

		if not await self.posts.delete_post(post_id):
			raise NotFoundError()
		await self.assets.delete(post.image_url)
		owner = await self.users.remove_post(post.creator.id, post_id)
		if owner is None:
			logger.error("user_post_unlink_failed", extra={"post_id": str(post_id), "user_id": str(post.creator.id)})
			raise StorageError()

		logger.info("post_deleted", extra={"post_id": str(post_id)})
		await self._publish(LifecycleEvent.deleted(post_id))
