"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"feedhub_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"feedhub_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"feedhub_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"feedhub_socketio_events_total",
	"Socket.IO events emitted per namespace",
	["namespace", "event"],
)

SOCKET_EMIT_FAILURES = Counter(
	"feedhub_socketio_emit_failures_total",
	"Socket.IO broadcasts that raised in the transport",
	["namespace", "event"],
)

POST_LIFECYCLE = Counter(
	"feedhub_post_lifecycle_total",
	"Committed post lifecycle transitions",
	["action"],
)

ASSET_CLEANUP_FAILURES = Counter(
	"feedhub_asset_cleanup_failures_total",
	"Asset deletions that failed and were skipped",
)

STORAGE_ERRORS = Counter(
	"feedhub_storage_errors_total",
	"Repository operations that failed against the database",
	["operation"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def socket_emit_failure(namespace: str, event: str) -> None:
	SOCKET_EMIT_FAILURES.labels(namespace=namespace, event=event).inc()


def inc_post_lifecycle(action: str) -> None:
	POST_LIFECYCLE.labels(action=action).inc()


def inc_asset_cleanup_failure() -> None:
	ASSET_CLEANUP_FAILURES.inc()


def inc_storage_error(operation: str) -> None:
	STORAGE_ERRORS.labels(operation=operation).inc()
