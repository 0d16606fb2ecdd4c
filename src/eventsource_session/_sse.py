"""
Incremental parser for Server-Sent Events (SSE) framing.
Accumulates raw bytes across arbitrarily split network chunks and extracts
complete frames, each terminated by a blank line.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass
from typing import Iterator

from eventsource_session._errors import SSEDecodeError

_BOM = codecs.BOM_UTF8
_FRAME_END = b"\n\n"


@dataclass(frozen=True, slots=True)
class SSEEvent:
    """
    Data structure representing a single Server-Sent Event (SSE).
    Stores the joined 'data' lines plus the structural fields seen so far.
    """

    data: str
    event: str = "message"
    id: str = ""
    retry: int | None = None


class SSEFrameParser:
    """
    Stateful text/event-stream decoder for one connection attempt.

    Bytes are buffered until a blank line closes a frame; only complete
    frames are decoded, so a UTF-8 sequence split across chunks is fine.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._at_stream_start = True
        self.last_event_id = ""
        self.retry_ms: int | None = None

    @property
    def pending(self) -> int:
        """Number of buffered bytes not yet part of a complete frame."""
        return len(self._buffer)

    def reset(self) -> None:
        """
        Forget everything buffered; used whenever a new attempt begins.

        `last_event_id` and `retry_ms` survive so a reconnect can resume.
        """
        self._buffer.clear()
        self._at_stream_start = True

    def clear(self) -> None:
        """Reset and also forget the last event id and retry interval."""
        self.reset()
        self.last_event_id = ""
        self.retry_ms = None

    def feed(self, chunk: bytes) -> Iterator[SSEEvent]:
        """
        Append a chunk and return the events completed by it.

        Args:
            chunk: Raw bytes as delivered by the transport.

        Returns:
            A lazy iterator over the complete events, in arrival order.
            Incomplete trailing content stays buffered for the next call.

        Raises:
            SSEDecodeError: While iterating, if a complete frame is not valid UTF-8.
        """
        self._buffer += chunk
        if self._at_stream_start and not self._strip_bom():
            return iter(())
        self._normalize_line_breaks()
        return self._drain()

    def _strip_bom(self) -> bool:
        # A BOM may arrive split across the first chunks.
        if len(self._buffer) < len(_BOM) and _BOM.startswith(bytes(self._buffer)):
            return False
        if self._buffer.startswith(_BOM):
            del self._buffer[: len(_BOM)]
        self._at_stream_start = False
        return True

    def _normalize_line_breaks(self) -> None:
        if b"\r" not in self._buffer:
            return
        # A trailing CR may be the first half of CRLF; hold it back.
        held = self._buffer.endswith(b"\r")
        body = bytes(self._buffer[:-1] if held else self._buffer)
        body = body.replace(b"\r\n", b"\n").replace(b"\r", b"\n")
        self._buffer = bytearray(body + (b"\r" if held else b""))

    def _drain(self) -> Iterator[SSEEvent]:
        while True:
            end = self._buffer.find(_FRAME_END)
            if end < 0:
                return
            raw = bytes(self._buffer[:end])
            del self._buffer[: end + len(_FRAME_END)]
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise SSEDecodeError.from_unicode_error(e, raw) from e
            event = self._parse_frame(text)
            if event is not None:
                yield event

    def _parse_frame(self, text: str) -> SSEEvent | None:
        data_lines: list[str] = []
        event_type = ""

        for line in text.split("\n"):
            if not line or line.startswith(":"):
                continue

            name, _, value = line.partition(":")
            if value.startswith(" "):
                value = value[1:]

            if name == "data":
                data_lines.append(value)
            elif name == "event":
                event_type = value
            elif name == "id":
                if "\0" not in value:
                    self.last_event_id = value
            elif name == "retry":
                if value.isascii() and value.isdigit():
                    self.retry_ms = int(value)

        if not data_lines:
            return None
        return SSEEvent(
            data="\n".join(data_lines),
            event=event_type or "message",
            id=self.last_event_id,
            retry=self.retry_ms,
        )


def iter_sse_events_from_text(text: str) -> Iterator[SSEEvent]:
    """
    Parse SSE events from a complete text block.

    Args:
        text: The raw string containing one or multiple SSE frames.

    Yields:
        SSEEvent objects for every frame that carries data.
    """
    parser = SSEFrameParser()
    yield from parser.feed(text.encode("utf-8"))
