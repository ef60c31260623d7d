"""Socket.IO wiring for feed change notifications."""

from __future__ import annotations

import socketio

from feedhub.feed.sockets import broadcaster
from feedhub.feed.sockets.namespace import FeedNamespace


def register(server: socketio.AsyncServer) -> broadcaster.Broadcaster:
	"""Register the feed namespace and bind the process-wide broadcaster."""
	namespace = FeedNamespace()
	server.register_namespace(namespace)
	return broadcaster.init(server, namespace=namespace.namespace)
