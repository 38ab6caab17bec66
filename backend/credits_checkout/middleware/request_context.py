from __future__ import annotations

import logging
import time
import uuid

import sentry_sdk
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..logging_utils import pop_request_context, push_request_context

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, expose it to logging, and log the outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        token = push_request_context(request_id)
        request.state.request_id = request_id
        sentry_sdk.set_tag("request_id", request_id)
        start = time.perf_counter()
        try:
            response: Response = await call_next(request)
            logger.info(
                "request finished",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status": response.status_code,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
        finally:
            pop_request_context(token)
        response.headers.setdefault("X-Request-ID", request_id)
        return response
