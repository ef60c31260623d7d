import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
import socketio
from httpx import ASGITransport, AsyncClient

# Ensure the backend package is importable when tests run from the repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="feedhub-images-"))
os.environ.setdefault("OBS_ENABLED", "false")

from feedhub.feed.domain import models
from feedhub.feed.domain.exceptions import StorageError
from feedhub.feed.infra.assets import AssetStore
from feedhub.feed.sockets.broadcaster import Broadcaster
from feedhub.feed.domain.services import PostsService
from feedhub.infra import postgres
from feedhub.main import app
from feedhub.settings import settings


class FakeUsersRepository:
	"""In-memory stand-in for UsersRepository."""

	def __init__(self) -> None:
		self.users: dict[UUID, models.User] = {}
		self.fail_on: set[str] = set()

	def add_user(self, name: str) -> models.User:
		user = models.User(id=uuid4(), name=name, email=f"{name.lower()}@example.com", created_at=datetime.now(timezone.utc))
		self.users[user.id] = user
		return user

	def _check(self, operation: str) -> None:
		if operation in self.fail_on:
			raise StorageError()

	async def get_user(self, user_id: UUID) -> models.User | None:
		self._check("get_user")
		user = self.users.get(user_id)
		return user.model_copy(deep=True) if user else None

	async def append_post(self, user_id: UUID, post_id: UUID) -> models.User | None:
		self._check("append_post")
		user = self.users.get(user_id)
		if user is None:
			return None
		user.post_ids.append(post_id)
		return user.model_copy(deep=True)

	async def remove_post(self, user_id: UUID, post_id: UUID) -> models.User | None:
		self._check("remove_post")
		user = self.users.get(user_id)
		if user is None:
			return None
		user.post_ids = [pid for pid in user.post_ids if pid != post_id]
		return user.model_copy(deep=True)


class FakePostsRepository:
	"""In-memory stand-in for PostsRepository; timestamps advance one second per insert."""

	def __init__(self, users: FakeUsersRepository) -> None:
		self.users = users
		self.rows: dict[UUID, dict] = {}
		self.fail_on: set[str] = set()
		self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

	def _check(self, operation: str) -> None:
		if operation in self.fail_on:
			raise StorageError()

	def _tick(self) -> datetime:
		self._clock += timedelta(seconds=1)
		return self._clock

	def _to_model(self, row: dict) -> models.Post:
		creator = self.users.users[row["creator_id"]]
		return models.Post(
			id=row["id"],
			title=row["title"],
			content=row["content"],
			image_url=row["image_url"],
			creator=models.PostCreator(id=creator.id, name=creator.name),
			created_at=row["created_at"],
			updated_at=row["updated_at"],
		)

	async def count_posts(self) -> int:
		self._check("count_posts")
		return len(self.rows)

	async def list_posts(self, *, offset: int, limit: int) -> list[models.Post]:
		self._check("list_posts")
		ordered = sorted(self.rows.values(), key=lambda row: (row["created_at"], str(row["id"])), reverse=True)
		return [self._to_model(row) for row in ordered[offset : offset + limit]]

	async def get_post(self, post_id: UUID) -> models.Post | None:
		self._check("get_post")
		row = self.rows.get(post_id)
		return self._to_model(row) if row else None

	async def create_post(self, *, title: str, content: str, image_url: str, creator_id: UUID) -> models.Post:
		self._check("create_post")
		now = self._tick()
		row = {
			"id": uuid4(),
			"title": title,
			"content": content,
			"image_url": image_url,
			"creator_id": creator_id,
			"created_at": now,
			"updated_at": now,
		}
		self.rows[row["id"]] = row
		return self._to_model(row)

	async def update_post(self, post_id: UUID, *, title: str, content: str, image_url: str) -> models.Post | None:
		self._check("update_post")
		row = self.rows.get(post_id)
		if row is None:
			return None
		row.update(title=title, content=content, image_url=image_url, updated_at=self._tick())
		return self._to_model(row)

	async def delete_post(self, post_id: UUID) -> bool:
		self._check("delete_post")
		return self.rows.pop(post_id, None) is not None


class RecordingAssetStore(AssetStore):
	"""Real disk-backed store that also records delete calls."""

	def __init__(self, root: Path) -> None:
		super().__init__(root)
		self.deleted: list[str] = []

	async def delete(self, ref: str | None) -> bool:
		self.deleted.append(ref)
		return await super().delete(ref)


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""API tests authenticate with the X-User-Id header, accepted in dev only."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture()
def users_repo() -> FakeUsersRepository:
	return FakeUsersRepository()


@pytest.fixture()
def posts_repo(users_repo) -> FakePostsRepository:
	return FakePostsRepository(users_repo)


@pytest.fixture()
def asset_store(tmp_path) -> RecordingAssetStore:
	return RecordingAssetStore(tmp_path / "images")


@pytest.fixture()
def socket_server() -> socketio.AsyncServer:
	server = socketio.AsyncServer(async_mode="asgi")
	server.emit = AsyncMock()
	return server


@pytest.fixture()
def broadcaster(socket_server) -> Broadcaster:
	return Broadcaster(socket_server)


@pytest.fixture()
def service(posts_repo, users_repo, asset_store, broadcaster) -> PostsService:
	return PostsService(posts=posts_repo, users=users_repo, assets=asset_store, broadcaster=broadcaster)


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
