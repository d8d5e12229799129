"""Per-request correlation id.

A client-supplied ``x-request-id`` is reused when it looks like an id (short,
printable, no whitespace); anything else is replaced with a fresh one so log
lines and error bodies never carry arbitrary header content.
"""

import time
from typing import Optional
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from loyalty_ai.core.logging import latency_bucket_ms, log_event, request_id_ctx_var

MAX_REQUEST_ID_LENGTH = 128


def resolve_request_id(incoming: Optional[str]) -> str:
    candidate = (incoming or "").strip()
    if 0 < len(candidate) <= MAX_REQUEST_ID_LENGTH and candidate.isprintable() and " " not in candidate:
        return candidate
    return uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, header_name: str = "x-request-id"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request, call_next):
        rid = resolve_request_id(request.headers.get(self.header_name))
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)
        route = {"path": request.url.path, "method": request.method}
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            log_event(
                "error",
                "request.failed",
                request_id=rid,
                event_type="http.request",
                error_code=exc.__class__.__name__,
                extra={**route, "latency_bucket": latency_bucket_ms((time.perf_counter() - started) * 1000)},
            )
            raise
        finally:
            request_id_ctx_var.reset(token)

        response.headers[self.header_name] = rid
        log_event(
            "info",
            "request.complete",
            request_id=rid,
            event_type="http.request",
            extra={
                **route,
                "status": response.status_code,
                "latency_bucket": latency_bucket_ms((time.perf_counter() - started) * 1000),
            },
        )
        return response
