from uuid import uuid4

from litestar.connection import ASGIConnection
from litestar.datastructures import MutableScopeHeaders
from litestar.enums import ScopeType
from litestar.middleware import MiddlewareProtocol
from litestar.types import ASGIApp, Message, Receive, Scope, Send

TRACE_ID_HEADER = "X-Trace-Id"
TRACE_ID_STATE_KEY = "trace_id"


def new_trace_id() -> str:
    return str(uuid4())


def get_trace_id(connection: ASGIConnection) -> str:
    """Return the request's trace id, assigning one if the middleware did not run."""
    trace_id = connection.state.get(TRACE_ID_STATE_KEY)
    if not trace_id:
        trace_id = new_trace_id()
        connection.state[TRACE_ID_STATE_KEY] = trace_id
    return trace_id


class TraceIdMiddleware(MiddlewareProtocol):
    """Give every HTTP request a trace id and echo it in the response headers."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != ScopeType.HTTP:
            await self.app(scope, receive, send)
            return

        trace_id = new_trace_id()
        scope.setdefault("state", {})[TRACE_ID_STATE_KEY] = trace_id

        async def send_with_trace_id(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableScopeHeaders.from_message(message)
                headers[TRACE_ID_HEADER] = trace_id
            await send(message)

        await self.app(scope, receive, send_with_trace_id)
