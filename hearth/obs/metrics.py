"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"hearth_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"hearth_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

CACHE_OPERATIONS = Counter(
	"hearth_cache_operations_total",
	"Entity cache operations by entity, operation and result",
	["entity", "op", "result"],
)

CACHE_CAS_CONFLICTS = Counter(
	"hearth_cache_cas_conflicts_total",
	"Optimistic list updates that lost a race and were retried",
	["entity"],
)

COLD_READS = Counter(
	"hearth_cold_reads_total",
	"Reads served from the durable store after a cache miss",
	["entity", "result"],
)

QUEUE_ENQUEUED = Counter(
	"hearth_queue_enqueued_total",
	"Jobs enqueued per queue and job type",
	["queue", "job_type"],
)

QUEUE_JOBS = Counter(
	"hearth_queue_jobs_total",
	"Job executions per queue, job type and result",
	["queue", "job_type", "result"],
)

QUEUE_JOB_DURATION = Histogram(
	"hearth_queue_job_duration_seconds",
	"Job handler duration in seconds",
	["queue", "job_type"],
	buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"hearth_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"hearth_socketio_events_total",
	"Socket.IO events emitted per namespace",
	["namespace", "event"],
)

SOCKET_EMIT_FAILURES = Counter(
	"hearth_socketio_emit_failures_total",
	"Broadcasts that raised and were dropped",
	["namespace", "event"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def cache_op(entity: str, op: str, result: str = "ok") -> None:
	CACHE_OPERATIONS.labels(entity=entity, op=op, result=result).inc()


def cache_cas_conflict(entity: str) -> None:
	CACHE_CAS_CONFLICTS.labels(entity=entity).inc()


def cold_read(entity: str, result: str) -> None:
	COLD_READS.labels(entity=entity, result=result).inc()


def job_enqueued(queue: str, job_type: str) -> None:
	QUEUE_ENQUEUED.labels(queue=queue, job_type=job_type).inc()


def record_job_run(queue: str, job_type: str, *, result: str, duration_seconds: float | None = None) -> None:
	QUEUE_JOBS.labels(queue=queue, job_type=job_type, result=result).inc()
	if duration_seconds is not None:
		QUEUE_JOB_DURATION.labels(queue=queue, job_type=job_type).observe(duration_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def socket_emit_failed(namespace: str, event: str) -> None:
	SOCKET_EMIT_FAILURES.labels(namespace=namespace, event=event).inc()
