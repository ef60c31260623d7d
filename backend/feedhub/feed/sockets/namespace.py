"""Socket.IO namespace every feed viewer connects to."""

from __future__ import annotations

import socketio

from feedhub.obs import logging as obs_logging
from feedhub.obs import metrics as obs_metrics

logger = obs_logging.get_logger("feedhub.feed.sockets")


class FeedNamespace(socketio.AsyncNamespace):
	"""Connections are anonymous and receive every `posts` broadcast."""

	def __init__(self, namespace: str = "/") -> None:
		super().__init__(namespace)
		self.clients: set[str] = set()

	async def on_connect(self, sid: str, environ: dict, auth: dict | None = None) -> None:
		self.clients.add(sid)
		obs_metrics.socket_connected(self.namespace)
		logger.info("socket_client_connected", extra={"sid": sid, "namespace": self.namespace})

	async def on_disconnect(self, sid: str, *args) -> None:
		if sid in self.clients:
			self.clients.discard(sid)
			obs_metrics.socket_disconnected(self.namespace)
		logger.info("socket_client_disconnected", extra={"sid": sid, "namespace": self.namespace})
