"""
Correlation context for agenda logs.

Two values ride along with the work in progress: the request ID (one per API
call or UI action) and the worker whose agenda is being read or written.
Both formatters pick them up, so a skipped row or a failed commit names the
request and the worker without every call site passing them in `extra`.
"""

import contextvars
import uuid

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "agenda_request_id", default=None
)
_worker_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "agenda_worker_id", default=None
)


def get_request_id() -> str | None:
    return _request_id_var.get()


def get_worker_id() -> str | None:
    """Worker bound by the innermost RequestContext, if any."""
    return _worker_id_var.get()


def generate_request_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


class RequestContext:
    """
    Scope a request ID, and optionally a worker, over a block of work.

    A nested context without an explicit request ID keeps the enclosing one,
    so binding a worker inside an API request does not break correlation.

    Usage:
        with RequestContext(worker_id="w-1"):
            timeline.load("w-1", start)
    """

    def __init__(self, request_id: str | None = None, worker_id: str | None = None):
        self.request_id = request_id or get_request_id() or generate_request_id()
        self.worker_id = worker_id or get_worker_id()
        self._tokens: list[tuple[contextvars.ContextVar, contextvars.Token]] = []

    def __enter__(self) -> "RequestContext":
        self._tokens = [
            (_request_id_var, _request_id_var.set(self.request_id)),
            (_worker_id_var, _worker_id_var.set(self.worker_id)),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens = []
