"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"mycircle_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"mycircle_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"mycircle_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"mycircle_socketio_events_total",
	"Socket.IO events handled per namespace",
	["namespace", "event"],
)

SOCKET_EMIT_FAILURES = Counter(
	"mycircle_socketio_emit_failures_total",
	"Socket.IO room emissions that raised",
	["event"],
)

PRESENCE_ONLINE_USERS = Gauge(
	"mycircle_presence_online_users",
	"Users with at least one live realtime connection",
)

CONTACT_REQUESTS_CREATED = Counter(
	"mycircle_contact_requests_created_total",
	"Contact requests created or re-opened",
	["result"],
)

CONTACT_REQUEST_REJECTS = Counter(
	"mycircle_contact_request_rejects_total",
	"Contact request creations refused",
	["reason"],
)

CONTACT_REQUEST_TRANSITIONS = Counter(
	"mycircle_contact_request_transitions_total",
	"Contact request status transitions",
	["status"],
)

CHAT_SEND = Counter(
	"mycircle_chat_send_total",
	"Chat messages persisted",
)

CHAT_SEND_REJECTS = Counter(
	"mycircle_chat_send_rejects_total",
	"Chat sends refused before persistence",
	["reason"],
)

CHAT_READ_UPDATES = Counter(
	"mycircle_chat_read_updates_total",
	"Messages flipped to read",
)

NOTIFICATIONS_CREATED = Counter(
	"mycircle_notifications_created_total",
	"Notifications persisted",
	["type"],
)

NOTIFICATION_FAILURES = Counter(
	"mycircle_notification_failures_total",
	"Notification deliveries that failed and were dropped",
	["stage"],
)

SAFETY_VERDICTS = Counter(
	"mycircle_safety_verdicts_total",
	"Content safety verdicts",
	["checker", "verdict"],
)

BLOCK_ACTIONS = Counter(
	"mycircle_block_actions_total",
	"Block list mutations",
	["action"],
)

REDIS_UP = Gauge("mycircle_redis_up", "Redis availability (1=up,0=down)")
REDIS_LATENCY = Histogram("mycircle_redis_ping_seconds", "Redis ping latency in seconds")
POSTGRES_UP = Gauge("mycircle_postgres_up", "Postgres availability (1=up,0=down)")
POSTGRES_LATENCY = Histogram("mycircle_postgres_ping_seconds", "Postgres ping latency in seconds")

BACKGROUND_RUNS = Counter(
	"mycircle_background_runs_total",
	"Background job executions",
	["name", "result"],
)

BACKGROUND_DURATION = Histogram(
	"mycircle_background_duration_seconds",
	"Background job duration in seconds",
	["name"],
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


def socket_emit_failure(event: str) -> None:
	SOCKET_EMIT_FAILURES.labels(event=event).inc()


def presence_online(count: int) -> None:
	PRESENCE_ONLINE_USERS.set(count)


def inc_contact_request(result: str) -> None:
	CONTACT_REQUESTS_CREATED.labels(result=result).inc()


def inc_contact_reject(reason: str) -> None:
	CONTACT_REQUEST_REJECTS.labels(reason=reason).inc()


def inc_contact_transition(status: str, count: int = 1) -> None:
	CONTACT_REQUEST_TRANSITIONS.labels(status=status).inc(count)


def inc_chat_send() -> None:
	CHAT_SEND.inc()


def inc_chat_send_reject(reason: str) -> None:
	CHAT_SEND_REJECTS.labels(reason=reason).inc()


def inc_chat_read(count: int = 1) -> None:
	if count > 0:
		CHAT_READ_UPDATES.inc(count)


def inc_notification(kind: str) -> None:
	NOTIFICATIONS_CREATED.labels(type=kind).inc()


def inc_notification_failure(stage: str) -> None:
	NOTIFICATION_FAILURES.labels(stage=stage).inc()


def inc_safety_verdict(checker: str, verdict: str) -> None:
	SAFETY_VERDICTS.labels(checker=checker, verdict=verdict).inc()


def inc_block(action: str) -> None:
	BLOCK_ACTIONS.labels(action=action).inc()


def mark_redis(ok: bool, *, latency_seconds: float | None = None) -> None:
	REDIS_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		REDIS_LATENCY.observe(latency_seconds)


def mark_postgres(ok: bool, *, latency_seconds: float | None = None) -> None:
	POSTGRES_UP.set(1 if ok else 0)
	if latency_seconds is not None:
		POSTGRES_LATENCY.observe(latency_seconds)


def record_job_run(name: str, *, result: str, duration_seconds: float | None = None) -> None:
	BACKGROUND_RUNS.labels(name=name, result=result).inc()
	if duration_seconds is not None:
		BACKGROUND_DURATION.labels(name=name).observe(duration_seconds)
