"""Request ID middleware for request tracing."""

import re
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

# Client ids are echoed into logs and headers, so only a safe charset is kept.
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{8,128}$")


def is_valid_request_id(value: str | None) -> bool:
    """Check whether a client-supplied request ID can be reused as is."""
    if not value:
        return False
    return REQUEST_ID_PATTERN.match(value) is not None


def generate_request_id() -> str:
    """Generate a new request ID (UUID4 string)."""
    return str(uuid.uuid4())


def resolve_request_id(value: str | None) -> str:
    """Reuse a valid client-supplied ID, otherwise mint a new one."""
    return value if is_valid_request_id(value) else generate_request_id()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to handle X-Request-ID header for request tracing.

    The browser may send its own ID to correlate a prompt run with server
    logs; the resolved ID is stored in ``request.state.request_id`` and echoed
    back on the response.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id

        return response
