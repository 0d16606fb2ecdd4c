"""
Connection controller of a Server-Sent Events client session.

One `EventSourceSession` owns a single logical stream: `start()` opens a
streaming GET through the injected transport, transport callbacks drive the
state machine and the frame parser, and results are published on three
channels:

    session.state   ConnectionState, replayed to new subscribers
    session.data    payload text of every complete event, no replay
    session.error   terminal error of an attempt, no replay

All mutable state is guarded by one re-entrant lock, and every transport
callback carries the generation of the attempt that created it; callbacks
from a superseded or stopped attempt are dropped.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any

from eventsource_session._client import HttpxTransport
from eventsource_session._config import EndpointConfig
from eventsource_session._errors import SSEDecodeError
from eventsource_session._signals import EventChannel, StateCell
from eventsource_session._sse import SSEFrameParser
from eventsource_session.transport import (
    UNBOUNDED_TIMEOUT,
    Decide,
    ResponseDisposition,
    ResponseInfo,
    StreamTask,
    Transport,
    TransportSession,
)

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CLOSED = "closed"
    CONNECTING = "connecting"
    OPEN = "open"


class _AttemptDelegate:
    """Tags transport callbacks with the generation that issued the request."""

    def __init__(self, session: EventSourceSession, generation: int) -> None:
        self._session = session
        self.generation = generation

    def on_response(self, task: StreamTask, response: ResponseInfo, decide: Decide) -> None:
        self._session.on_response_received(response, decide, self.generation)

    def on_data(self, task: StreamTask, chunk: bytes) -> None:
        self._session.on_data_received(chunk, self.generation)

    def on_complete(self, task: StreamTask, error: BaseException | None) -> None:
        self._session.on_completed(error, self.generation)


class EventSourceSession:
    """
    Long-lived, unidirectional event stream client.

    Args:
        url: Stream endpoint; falls back to EVENTSOURCE_URL when omitted.
        transport: Transport capability; defaults to the httpx implementation.

    Calling `start()` while connecting or open restarts the stream: the
    current attempt is cancelled and `closed` is published before the new
    `connecting`. Reconnection after failure is left to the caller.
    """

    def __init__(self, url: str | None = None, *, transport: Transport | None = None) -> None:
        self._url = EndpointConfig.from_env_or_value(url).url
        self._transport: Transport = transport if transport is not None else HttpxTransport()

        # One lock for the session and its channels keeps a single lock order.
        self._lock = threading.RLock()
        self.state: StateCell[ConnectionState] = StateCell("state", ConnectionState.CLOSED, lock=self._lock)
        self.data: EventChannel[str] = EventChannel("data", lock=self._lock)
        self.error: EventChannel[BaseException] = EventChannel("error", lock=self._lock)

        self._parser = SSEFrameParser()
        self._handle: TransportSession | None = None
        self._generation = 0

    def __repr__(self) -> str:
        return f"EventSourceSession(url={self._url!r}, state={self.current_state.value!r})"

    @property
    def url(self) -> str:
        return self._url

    @property
    def current_state(self) -> ConnectionState:
        return self.state.value

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def last_event_id(self) -> str:
        with self._lock:
            return self._parser.last_event_id

    # --------- caller-facing operations ---------

    def start(self) -> None:
        """Open the stream; returns once the request has been issued."""
        stale: TransportSession | None = None
        with self._lock:
            if self.state.value is not ConnectionState.CLOSED:
                logger.debug("Restarting %s from state %s", self._url, self.state.value.value)
                stale = self._detach()
                self.state.set(ConnectionState.CLOSED)

            self._generation += 1
            generation = self._generation
            self._parser.reset()
            self.state.set(ConnectionState.CONNECTING)
            logger.debug("Connecting to %s (generation %d)", self._url, generation)

            try:
                handle = self._transport.create_session(
                    timeout=UNBOUNDED_TIMEOUT,
                    delegate=_AttemptDelegate(self, generation),
                )
                self._handle = handle
                handle.stream(self._url, last_event_id=self._parser.last_event_id or None).resume()
            except Exception:
                failed = self._detach()
                self.state.set(ConnectionState.CLOSED)
                if failed is not None:
                    failed.invalidate_and_cancel()
                raise
            finally:
                if stale is not None:
                    stale.invalidate_and_cancel()

    def stop(self) -> None:
        """Close the stream; valid from any state and always ends in `closed`."""
        with self._lock:
            handle = self._detach()
            self.state.set(ConnectionState.CLOSED)
            logger.debug("Stopped %s (generation %d)", self._url, self._generation)
        if handle is not None:
            handle.invalidate_and_cancel()

    def close(self) -> None:
        """Release the session; any live transport is invalidated first."""
        self.stop()

    def __enter__(self) -> EventSourceSession:
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # --------- transport callbacks ---------

    def on_response_received(self, response: ResponseInfo, decide: Decide, generation: int) -> None:
        with self._lock:
            current = generation == self._generation
            if current:
                logger.debug("Stream %s open, status %s", self._url, response.status_code)
                self.state.set(ConnectionState.OPEN)
            else:
                logger.debug("Dropping stale response of generation %d", generation)
        decide(ResponseDisposition.ALLOW if current else ResponseDisposition.CANCEL)

    def on_data_received(self, chunk: bytes, generation: int) -> None:
        handle: TransportSession | None = None
        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping %d stale bytes of generation %d", len(chunk), generation)
                return
            try:
                for event in self._parser.feed(chunk):
                    self.data.publish(event.data)
                    if generation != self._generation:
                        # A subscriber stopped or restarted the session.
                        break
            except SSEDecodeError as e:
                logger.debug("Closing %s on undecodable frame: %s", self._url, e)
                handle = self._detach()
                self.state.set(ConnectionState.CLOSED)
                self.error.publish(e)
        if handle is not None:
            handle.invalidate_and_cancel()

    def on_completed(self, error: BaseException | None, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping stale completion of generation %d", generation)
                return
            handle = self._detach()
            self.state.set(ConnectionState.CLOSED)
            if error is not None:
                logger.debug("Stream %s failed: %s", self._url, error)
                self.error.publish(error)
            else:
                logger.debug("Stream %s closed by server", self._url)
        if handle is not None:
            handle.invalidate_and_cancel()

    def _detach(self) -> TransportSession | None:
        # Caller holds the lock; bumping the generation fences late callbacks.
        self._generation += 1
        self._parser.reset()
        handle, self._handle = self._handle, None
        return handle
