"""FastAPI application entrypoint.

Serve with ``uvicorn feedhub.main:socket_app``; the Socket.IO server wraps the
FastAPI app so HTTP routes and the realtime channel share one process.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.staticfiles import StaticFiles

from feedhub import obs
from feedhub.api import ops
from feedhub.api.errors import install_error_handlers
from feedhub.feed import router as feed_router
from feedhub.feed import sockets as feed_sockets
from feedhub.feed.infra.assets import PUBLIC_PREFIX
from feedhub.infra import postgres
from feedhub.obs import logging as obs_logging
from feedhub.settings import settings

logger = obs_logging.get_logger("feedhub.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	logger.info("server_started", extra={"environment": settings.environment})
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Feedhub", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["*"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
	allow_headers=["Content-Type", "Authorization"],
)
obs.init(app)

upload_root = Path(settings.upload_dir).resolve()
upload_root.mkdir(parents=True, exist_ok=True)
app.mount(f"/{PUBLIC_PREFIX}", StaticFiles(directory=str(upload_root)), name=PUBLIC_PREFIX)

app.include_router(ops.router)
app.include_router(feed_router)

client_manager = socketio.AsyncRedisManager(settings.socketio_redis_url) if settings.socketio_redis_url else None
sio = socketio.AsyncServer(
	async_mode="asgi",
	cors_allowed_origins=allow_origins or [],
	client_manager=client_manager,
)
feed_sockets.register(sio)
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
