"""Request ID middleware for per-request log correlation.

This middleware:
1. Takes the request ID from the X-Request-ID header, or generates a UUID
2. Stores it in request.state.request_id
3. Adds it (and the forwarded user id, when present) to the logging context
4. Echoes X-Request-ID on the response
5. Clears the logging context when the request finishes
"""

from __future__ import annotations

from typing import TYPE_CHECKING
import uuid

from revia_service.core.settings import get_app_settings
from revia_service.infra.logging.context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

REQUEST_ID_HEADER = b"x-request-id"


class RequestIDMiddleware:
    """Pure ASGI middleware adding a request ID to state, logs and response.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app
        self._user_header = get_app_settings().user_id_header.lower().encode("latin-1")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        request_id = headers.get(REQUEST_ID_HEADER, b"").decode("latin-1") or str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id

        context = {"request_id": request_id}
        user_id = headers.get(self._user_header, b"").decode("latin-1").strip()
        if user_id:
            context["user_id"] = user_id
        set_log_context(**context)

        async def send_with_request_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].append((REQUEST_ID_HEADER, request_id.encode("latin-1")))
            await send(message)

        try:
            await self.app(scope, receive, send_with_request_id)
        finally:
            clear_log_context()
