"""Request context middleware: request id, timing, per-request log fields.

Concurrent requests interleave their log lines.  Every line emitted
while serving a request is stamped with that request's id, and, once
known, the student and course it concerns.  The values live in context
variables, which follow each request's async task rather than the
shared event-loop thread.

    INFO  [req-abc] Lesson completed student=s-1 course=c-7 ...
    WARN  [req-xyz] Quiz attempt rejected student=s-2 ... reason=cooldown

Student and course are bound from inside the request (the auth
dependency knows the student, routers know the course).  Sync
dependencies run in a worker thread with a copy of the context, so the
fields live in a dict created here that the copies share.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")
log_fields_var: ContextVar[dict[str, str] | None] = ContextVar("log_fields", default=None)

_BINDABLE = frozenset({"student_id", "course_id"})


def bind_log_fields(**fields: str) -> None:
    """Attach student_id/course_id to every log line for the rest of the request."""
    unknown = set(fields) - _BINDABLE
    if unknown:
        raise ValueError(f"unsupported log fields: {sorted(unknown)}")
    current = log_fields_var.get()
    if current is None:
        log_fields_var.set(dict(fields))
    else:
        current.update(fields)


def _stamp_context(record: logging.LogRecord) -> logging.LogRecord:
    record.request_id = request_id_var.get("-")  # type: ignore[attr-defined]
    fields = log_fields_var.get()
    if fields:
        for key, value in fields.items():
            setattr(record, key, value)
    return record


# Logger filters only see records created on that exact logger, not ones
# propagated from app.* children, so the stamping happens in the record
# factory, which every logger goes through.
_base_record_factory = logging.getLogRecordFactory()


def _record_factory(*args, **kwargs) -> logging.LogRecord:
    return _stamp_context(_base_record_factory(*args, **kwargs))


_record_factory.stamps_request_context = True  # type: ignore[attr-defined]

# Guard against double installation across module reloads.
if not getattr(_base_record_factory, "stamps_request_context", False):
    logging.setLogRecordFactory(_record_factory)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign a request id, time the request, log one summary line.

    1. Reads X-Request-ID (if the client sent one) or generates a UUID
    2. Opens a fresh log-field scope for student/course binding
    3. Times the request and logs method, path, status, duration
    4. Echoes X-Request-ID on the response
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(req_id)
        fields: dict[str, str] = {}
        log_fields_var.set(fields)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
            },
        )

        response.headers["X-Request-ID"] = req_id

        return response
