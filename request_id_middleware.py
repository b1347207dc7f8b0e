"""FastAPI middleware that gives every request an X-Request-ID and binds it
into structlog contextvars, so all log lines written while handling a search
or auth call can be correlated.
"""
from __future__ import annotations

import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from structlog.contextvars import bind_contextvars, clear_contextvars


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Reuse the caller's X-Request-ID when present, otherwise mint a uuid4 hex.

    The id is echoed in the response header, stored on ``request.state`` and
    bound into the structlog context together with method and path.
    """

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:  # type: ignore[override]
        request_id = request.headers.get(self.header_name) or uuid.uuid4().hex
        clear_contextvars()
        bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        request.state.request_id = request_id

        try:
            response: Response = await call_next(request)
        finally:
            clear_contextvars()

        response.headers[self.header_name] = request_id
        return response
