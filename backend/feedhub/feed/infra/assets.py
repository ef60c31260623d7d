"""Local disk storage for post images.

Files live under ``settings.upload_dir`` and are referenced as
``images/<ULID>-<original name>``; the same prefix is mounted for static
serving by the application.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

import ulid
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from feedhub.obs import logging as obs_logging
from feedhub.obs import metrics as obs_metrics
from feedhub.settings import settings

ALLOWED_MIME_TYPES = ("image/png", "image/jpg", "image/jpeg")
PUBLIC_PREFIX = "images"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

logger = obs_logging.get_logger("feedhub.feed.assets")


def _safe_name(filename: Optional[str]) -> str:
	name = Path(filename or "").name
	name = _UNSAFE_CHARS.sub("_", name).strip("._")
	return name or "upload"


class AssetStore:
	"""Stores and removes image files backing posts."""

	def __init__(self, root: Path | str | None = None) -> None:
		self.root = Path(root or settings.upload_dir).resolve()

	def _ensure_root(self) -> Path:
		self.root.mkdir(parents=True, exist_ok=True)
		return self.root

	def _resolve(self, ref: str) -> Path | None:
		relative = ref.replace("\\", "/").lstrip("/")
		prefix = f"{PUBLIC_PREFIX}/"
		if relative.startswith(prefix):
			relative = relative[len(prefix):]
		target = (self.root / relative).resolve()
		if target == self.root or self.root not in target.parents:
			return None
		return target

	async def store(self, upload: UploadFile | None) -> str | None:
		"""Persist an uploaded image and return its reference.

		Uploads that are missing, empty, larger than ``settings.asset_max_bytes``
		or not png/jpg/jpeg are not stored and yield None; the caller decides
		whether that is an error.
		"""
		if upload is None:
			return None
		content_type = (upload.content_type or "").lower()
		if content_type not in ALLOWED_MIME_TYPES:
			logger.info("asset_rejected", extra={"reason": "content_type", "content_type": content_type})
			return None
		limit = settings.asset_max_bytes
		content = await upload.read(limit + 1)
		if not content or len(content) > limit:
			logger.info("asset_rejected", extra={"reason": "size", "bytes": len(content), "limit": limit})
			return None
		filename = f"{ulid.new().str}-{_safe_name(upload.filename)}"
		target = self._ensure_root() / filename
		await run_in_threadpool(target.write_bytes, content)
		logger.info("asset_stored", extra={"asset": filename, "bytes": len(content)})
		return f"{PUBLIC_PREFIX}/{filename}"

	async def delete(self, ref: str | None) -> bool:
		"""Remove an asset; returns True only when a file was deleted.

		A missing file is not an error. Other I/O failures are logged and
		swallowed so cleanup never fails a post mutation.
		"""
		if not ref:
			return False
		target = self._resolve(ref)
		if target is None:
			logger.warning("asset_delete_refused", extra={"asset": ref})
			return False
		try:
			await run_in_threadpool(target.unlink)
		except FileNotFoundError:
			logger.info("asset_already_absent", extra={"asset": ref})
			return False
		except OSError as exc:
			obs_metrics.inc_asset_cleanup_failure()
			logger.warning("asset_delete_failed", extra={"asset": ref, "error": str(exc)})
			return False
		logger.info("asset_deleted", extra={"asset": ref})
		return True
