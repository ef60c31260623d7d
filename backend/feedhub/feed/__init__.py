"""FastAPI routers for the feed domain."""

from __future__ import annotations

from fastapi import APIRouter

from feedhub.feed.api import posts

router = APIRouter(prefix="/feed")

router.include_router(posts.router)

__all__ = ["router"]
