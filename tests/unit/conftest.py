from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from eventsource_session import EventSourceSession, ResponseDisposition, ResponseInfo

TEST_URL = "http://test.com"


class FakeTask:
    def __init__(self, session: "FakeTransportSession", url: str) -> None:
        self._session = session
        self._url = url
        self.resumed = False

    @property
    def url(self) -> str:
        return self._url

    def resume(self) -> None:
        self.resumed = True
        self._session.calls.append({"method": "resume", "url": self._url})


class FakeTransportSession:
    """Records what the controller asks for and lets tests play the transport."""

    def __init__(self, *, timeout: httpx.Timeout, delegate: Any) -> None:
        self.timeout = timeout
        self.delegate = delegate
        self.tasks: list[FakeTask] = []
        self.calls: list[dict[str, Any]] = []

    @property
    def task(self) -> FakeTask:
        return self.tasks[-1]

    @property
    def cancelled(self) -> bool:
        return any(c["method"] == "invalidate_and_cancel" for c in self.calls)

    def stream(self, url: str, *, last_event_id: str | None = None) -> FakeTask:
        self.calls.append({"method": "stream", "url": url, "last_event_id": last_event_id})
        task = FakeTask(self, url)
        self.tasks.append(task)
        return task

    def invalidate_and_cancel(self) -> None:
        self.calls.append({"method": "invalidate_and_cancel"})

    # --------- transport side ---------

    def respond(self, status_code: int = 200, headers: dict[str, str] | None = None) -> list[ResponseDisposition]:
        decisions: list[ResponseDisposition] = []
        info = ResponseInfo(
            status_code=status_code,
            url=self.task.url,
            headers=headers or {"content-type": "text/event-stream"},
        )
        self.delegate.on_response(self.task, info, decisions.append)
        return decisions

    def send(self, chunk: bytes) -> None:
        self.delegate.on_data(self.task, chunk)

    def complete(self, error: BaseException | None = None) -> None:
        self.delegate.on_complete(self.task, error)


class FakeTransport:
    def __init__(self) -> None:
        self.sessions: list[FakeTransportSession] = []
        self.fail_with: Exception | None = None

    @property
    def last(self) -> FakeTransportSession:
        return self.sessions[-1]

    def create_session(self, *, timeout: httpx.Timeout, delegate: Any) -> FakeTransportSession:
        if self.fail_with is not None:
            raise self.fail_with
        session = FakeTransportSession(timeout=timeout, delegate=delegate)
        self.sessions.append(session)
        return session


@dataclass
class Recorder:
    states: list[Any] = field(default_factory=list)
    data: list[str] = field(default_factory=list)
    errors: list[BaseException] = field(default_factory=list)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def session(transport: FakeTransport) -> EventSourceSession:
    return EventSourceSession(TEST_URL, transport=transport)


@pytest.fixture
def recorder(session: EventSourceSession) -> Recorder:
    rec = Recorder()
    session.state.subscribe(rec.states.append)
    session.data.subscribe(rec.data.append)
    session.error.subscribe(rec.errors.append)
    return rec
