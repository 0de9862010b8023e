import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger()


class CorrelationIdMiddleware:
    """Binds a correlation ID to every log line emitted while serving a request.

    The ID comes from the ``X-Request-ID`` header or is a fresh UUID4.  It
    is echoed back in the ``X-Request-ID`` response header so clients can
    quote it when reporting a failed refund or order.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.META.get("HTTP_X_REQUEST_ID") or str(uuid.uuid4())
        correlation_id_var.set(cid)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=cid,
            method=request.method,
            path=request.path,
        )

        started = time.monotonic()
        logger.info("request_started")

        response = self.get_response(request)

        logger.info(
            "request_finished",
            status_code=response.status_code,
            duration_ms=round((time.monotonic() - started) * 1000, 2),
        )

        response["X-Request-ID"] = cid
        return response
