"""Process-wide channel pushing lifecycle events to connected clients.

The broadcaster is created once, after the Socket.IO server exists, and is
then shared by every request handler. Delivery is best-effort: events go to
the clients connected at publish time and are never queued or replayed.
"""

from __future__ import annotations

from typing import Optional

import socketio

from feedhub.feed.domain.events import LifecycleEvent
from feedhub.obs import logging as obs_logging
from feedhub.obs import metrics as obs_metrics

POSTS_EVENT = "posts"

logger = obs_logging.get_logger("feedhub.feed.broadcaster")


class BroadcasterNotInitialized(RuntimeError):
	"""Raised when publishing before the Socket.IO server has been bound."""


class Broadcaster:
	def __init__(self, server: socketio.AsyncServer, *, namespace: str = "/") -> None:
		self.server = server
		self.namespace = namespace

	async def publish(self, event: LifecycleEvent) -> None:
		"""Emit `event` on the `posts` channel to every connected client.

		Transport failures are logged and counted, never raised.
		"""
		payload = event.to_payload()
		try:
			await self.server.emit(POSTS_EVENT, payload, namespace=self.namespace)
		except Exception:
			obs_metrics.socket_emit_failure(self.namespace, POSTS_EVENT)
			logger.exception("posts_broadcast_failed", extra={"action": event.action})
			return
		obs_metrics.socket_event(self.namespace, POSTS_EVENT)


_broadcaster: Optional[Broadcaster] = None


def init(server: socketio.AsyncServer, *, namespace: str = "/") -> Broadcaster:
	global _broadcaster
	_broadcaster = Broadcaster(server, namespace=namespace)
	return _broadcaster


def get_broadcaster() -> Broadcaster:
	if _broadcaster is None:
		raise BroadcasterNotInitialized("broadcaster not initialized")
	return _broadcaster
