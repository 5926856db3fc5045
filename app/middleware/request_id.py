"""Request ID middleware (raw ASGI).

Forwards a well-formed client X-Request-ID or generates one, stores it on
request.state.request_id and echoes it on the response.
"""

import re
from typing import Callable

from app.shared.utils.generators import generate_cuid

REQUEST_ID_MAX_LENGTH = 64
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9_-]{1,%d}$" % REQUEST_ID_MAX_LENGTH)


def _incoming_request_id(scope: dict, header_name: str) -> str | None:
    wanted = header_name.lower().encode()
    for key, value in scope.get("headers", []):
        if key.lower() == wanted:
            candidate = value.decode("latin-1").strip()
            # Client values end up in log lines; reject anything unusual.
            return candidate if _SAFE_REQUEST_ID.match(candidate) else None
    return None


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Wrap app so each HTTP request carries a request id."""
    header_bytes = header_name.encode()

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return
        request_id = _incoming_request_id(scope, header_name) or generate_cuid()
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (header_bytes, request_id.encode()),
                ]
            await send(message)

        await app(scope, receive, send_with_id)

    return asgi_app
