from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from eventsource_session._config import http_debug_enabled
from eventsource_session._errors import TransportError
from eventsource_session.transport import (
    ResponseDisposition,
    ResponseInfo,
    TransportDelegate,
)

logger = logging.getLogger(__name__)


class StreamRequestParams(BaseModel):
    """
    HTTP options applied to every streaming GET issued by HttpxTransport.
    """
    model_config = ConfigDict(extra="forbid")

    accept: str = "text/event-stream"
    cache_control: Optional[str] = "no-cache"
    headers: dict[str, str] = Field(default_factory=dict)

    # Sent as Last-Event-ID so the server can resume the stream.
    last_event_id: Optional[str] = None

    follow_redirects: bool = True

    def to_headers(self) -> dict[str, str]:
        out = dict(self.headers)
        out["Accept"] = self.accept
        if self.cache_control:
            out["Cache-Control"] = self.cache_control
        if self.last_event_id:
            out["Last-Event-ID"] = self.last_event_id
        return out


def _redact_headers(headers: dict[str, Any]) -> dict[str, Any]:
    out = dict(headers)
    for k in ("authorization", "Authorization"):
        if k in out:
            out[k] = "Bearer ***REDACTED***"
    return out


def _log_request(request: httpx.Request) -> None:
    logging.warning("HTTPX REQUEST %s %s", request.method, request.url)
    logging.warning("HTTPX REQUEST headers=%s", _redact_headers(dict(request.headers)))


def _log_response(response: httpx.Response) -> None:
    req = response.request
    logging.warning("HTTPX RESPONSE %s %s -> %s", req.method, req.url, response.status_code)
    logging.warning("HTTPX RESPONSE headers=%s", dict(response.headers))
    if "text/event-stream" in response.headers.get("content-type", ""):
        logging.warning("HTTPX RESPONSE body=(event-stream; not auto-logged)")


class HttpxTransport:
    """
    Transport backed by httpx:
    - one httpx.Client per transport session
    - one daemon worker thread per streaming request
    - debug logging via event hooks when EVENTSOURCE_HTTP_DEBUG is set
    """

    def __init__(
        self,
        *,
        params: StreamRequestParams | None = None,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._params = params or StreamRequestParams()
        self._http_transport = http_transport
        self._debug_http = http_debug_enabled()

    @property
    def params(self) -> StreamRequestParams:
        return self._params

    def create_session(self, *, timeout: httpx.Timeout, delegate: TransportDelegate) -> HttpxStreamSession:
        EventHooksDict = dict[str, list[Callable[..., Any]]]
        hooks: EventHooksDict = {"request": [], "response": []}
        if self._debug_http:
            hooks = {"request": [_log_request], "response": [_log_response]}

        client = httpx.Client(
            timeout=timeout,
            follow_redirects=self._params.follow_redirects,
            event_hooks=hooks,
            transport=self._http_transport,
        )
        return HttpxStreamSession(client=client, delegate=delegate, headers=self._params.to_headers())


class HttpxStreamSession:
    """Holds the httpx client and the tasks of one connection attempt."""

    def __init__(self, *, client: httpx.Client, delegate: TransportDelegate, headers: dict[str, str]) -> None:
        self._client = client
        self._delegate = delegate
        self._headers = headers
        self._lock = threading.Lock()
        self._tasks: list[HttpxStreamTask] = []
        self._invalidated = False

    @property
    def client(self) -> httpx.Client:
        return self._client

    @property
    def delegate(self) -> TransportDelegate:
        return self._delegate

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    @property
    def invalidated(self) -> bool:
        return self._invalidated

    @property
    def tasks(self) -> list[HttpxStreamTask]:
        with self._lock:
            return list(self._tasks)

    def stream(self, url: str, *, last_event_id: str | None = None) -> HttpxStreamTask:
        headers = self.headers
        if last_event_id:
            headers["Last-Event-ID"] = last_event_id
        with self._lock:
            if self._invalidated:
                raise TransportError(message="transport session already invalidated", url=url)
            task = HttpxStreamTask(session=self, url=url, headers=headers)
            self._tasks.append(task)
        return task

    def invalidate_and_cancel(self) -> None:
        with self._lock:
            if self._invalidated:
                return
            self._invalidated = True
            tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        self._client.close()


class HttpxStreamTask:
    """
    A streaming GET executed on a worker thread once resumed.

    The delegate must answer `on_response` synchronously through `decide`;
    an unanswered response is treated as cancelled.
    """

    def __init__(self, *, session: HttpxStreamSession, url: str, headers: dict[str, str] | None = None) -> None:
        self._session = session
        self._url = url
        self._headers = headers if headers is not None else session.headers
        self._cancelled = threading.Event()
        self._response: httpx.Response | None = None
        self._thread: threading.Thread | None = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def resume(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=f"eventsource:{self._url}", daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        self._cancelled.set()
        response = self._response
        if response is not None:
            response.close()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self) -> None:
        delegate = self._session.delegate
        error: BaseException | None = None

        try:
            if not self._cancelled.is_set():
                error = self._stream(delegate)
        except (httpx.HTTPError, RuntimeError) as e:
            # Closing the response or client from stop() surfaces here as a stream error.
            if not self._cancelled.is_set():
                logger.warning("Stream %s failed: %r", self._url, e)
                error = TransportError.from_exception(e, url=self._url)
        except Exception as e:
            # on_complete still fires once when a delegate callback raises.
            logger.exception("Stream %s aborted", self._url)
            error = TransportError.from_exception(e, url=self._url)
        finally:
            self._response = None

        if self._cancelled.is_set():
            error = TransportError(message="cancelled", url=self._url, cancelled=True)
        delegate.on_complete(self, error)

    def _stream(self, delegate: TransportDelegate) -> BaseException | None:
        client = self._session.client
        with client.stream("GET", self._url, headers=self._headers) as response:
            self._response = response

            decision: list[ResponseDisposition] = []
            delegate.on_response(self, ResponseInfo.from_httpx(response), decision.append)
            if not decision or decision[0] is not ResponseDisposition.ALLOW:
                return TransportError(
                    message="response rejected by delegate",
                    url=self._url,
                    status_code=response.status_code,
                    cancelled=True,
                )

            for chunk in response.iter_bytes():
                if self._cancelled.is_set():
                    break
                if chunk:
                    delegate.on_data(self, chunk)
        return None
