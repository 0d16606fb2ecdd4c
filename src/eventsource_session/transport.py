"""
Capability interface a session needs from its HTTP transport.

A transport creates a session bound to one delegate, the session issues
streaming GET requests as tasks, and every task reports back through the
delegate from a context the caller does not control:

    response received  ->  delegate.on_response(task, info, decide)
    body chunk         ->  delegate.on_data(task, chunk)
    finished           ->  delegate.on_complete(task, error)

`EventSourceSession` accepts any object implementing `Transport`, which is
how tests substitute a recording fake for the httpx implementation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol, runtime_checkable

import httpx

# No connect, read, write or pool limit: idle streams stay open until stopped.
UNBOUNDED_TIMEOUT = httpx.Timeout(None)


class ResponseDisposition(str, Enum):
    """Answer to a received response: keep reading the body or drop it."""

    ALLOW = "allow"
    CANCEL = "cancel"


@dataclass(frozen=True, slots=True)
class ResponseInfo:
    """Response metadata handed to the delegate before any body bytes."""

    status_code: int
    url: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    @staticmethod
    def from_httpx(response: httpx.Response) -> ResponseInfo:
        return ResponseInfo(
            status_code=response.status_code,
            url=str(response.url),
            headers={k.lower(): v for k, v in response.headers.items()},
        )


Decide = Callable[[ResponseDisposition], None]


@runtime_checkable
class StreamTask(Protocol):
    """One streaming request; idle until resumed."""

    @property
    def url(self) -> str: ...

    def resume(self) -> None: ...


@runtime_checkable
class TransportDelegate(Protocol):
    """Receiver of asynchronous task callbacks."""

    def on_response(self, task: StreamTask, response: ResponseInfo, decide: Decide) -> None: ...

    def on_data(self, task: StreamTask, chunk: bytes) -> None: ...

    def on_complete(self, task: StreamTask, error: BaseException | None) -> None: ...


@runtime_checkable
class TransportSession(Protocol):
    """Owner of the tasks created for one connection attempt.

    `last_event_id`, when given, is sent as the `Last-Event-ID` request header.
    """

    def stream(self, url: str, *, last_event_id: str | None = None) -> StreamTask: ...

    def invalidate_and_cancel(self) -> None: ...


@runtime_checkable
class Transport(Protocol):
    """Factory of transport sessions."""

    def create_session(self, *, timeout: httpx.Timeout, delegate: TransportDelegate) -> TransportSession: ...
