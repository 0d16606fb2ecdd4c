from __future__ import annotations

from eventsource_session.session import ConnectionState, EventSourceSession
from eventsource_session.transport import (
    UNBOUNDED_TIMEOUT,
    ResponseDisposition,
    ResponseInfo,
    StreamTask,
    Transport,
    TransportDelegate,
    TransportSession,
)
from eventsource_session._client import HttpxTransport, StreamRequestParams
from eventsource_session._errors import EventSourceError, SSEDecodeError, TransportError
from eventsource_session._signals import EventChannel, StateCell, Subscription
from eventsource_session._sse import SSEEvent, SSEFrameParser, iter_sse_events_from_text

__all__ = [
    "ConnectionState",
    "EventChannel",
    "EventSourceError",
    "EventSourceSession",
    "HttpxTransport",
    "ResponseDisposition",
    "ResponseInfo",
    "SSEDecodeError",
    "SSEEvent",
    "SSEFrameParser",
    "StateCell",
    "StreamRequestParams",
    "StreamTask",
    "Subscription",
    "Transport",
    "TransportDelegate",
    "TransportError",
    "TransportSession",
    "UNBOUNDED_TIMEOUT",
    "iter_sse_events_from_text",
]

__version__ = "0.1.0"
