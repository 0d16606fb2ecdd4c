from __future__ import annotations
from dataclasses import dataclass
from typing import Any


class EventSourceError(RuntimeError):
    """Base error of the library."""


@dataclass(slots=True)
class TransportError(EventSourceError):
    """
    Terminal failure reported by the transport for one connection attempt.

    Wraps whatever the HTTP layer raised (connect failure, broken body read,
    explicit cancellation) so subscribers of the error channel get a single,
    structured type:
    {
        "message": "...",
        "url": "https://...",
        "status_code": 502 | None,
        "cancelled": false,
        "cause": <original exception> | None
    }
    """
    message: str
    url: str | None = None
    status_code: int | None = None
    cancelled: bool = False
    cause: BaseException | None = None

    def __str__(self) -> str:
        parts = [f"TransportError(message={self.message!r}"]
        if self.url:
            parts.append(f", url={self.url!r}")
        if self.status_code is not None:
            parts.append(f", status_code={self.status_code}")
        if self.cancelled:
            parts.append(", cancelled=True")
        if self.cause is not None:
            parts.append(f", cause={type(self.cause).__name__}")
        parts.append(")")
        return "".join(parts)

    @staticmethod
    def from_exception(exc: BaseException, *, url: str | None = None) -> TransportError:
        """Build a TransportError from an httpx (or stream) exception."""
        status_code: int | None = None
        response = getattr(exc, "response", None)
        if response is not None:
            status_code = getattr(response, "status_code", None)
        message = str(exc) or type(exc).__name__
        return TransportError(message=message, url=url, status_code=status_code, cause=exc)

    def to_dict(self) -> dict[str, Any]:
        """Flatten the error for structured logging."""
        return {
            "message": self.message,
            "url": self.url,
            "status_code": self.status_code,
            "cancelled": self.cancelled,
            "cause": repr(self.cause) if self.cause is not None else None,
        }

    @property
    def is_cancelled(self) -> bool:
        """True if the attempt ended because it was cancelled locally."""
        return self.cancelled


@dataclass(slots=True)
class SSEDecodeError(EventSourceError):
    """
    A complete frame whose bytes are not valid UTF-8.

    `offset` points at the first malformed byte inside `frame`.
    """
    message: str
    offset: int = 0
    frame: bytes = b""

    def __str__(self) -> str:
        return f"SSEDecodeError(message={self.message!r}, offset={self.offset}, frame={len(self.frame)} bytes)"

    @staticmethod
    def from_unicode_error(exc: UnicodeDecodeError, frame: bytes) -> SSEDecodeError:
        return SSEDecodeError(
            message=f"invalid UTF-8 in event frame: {exc.reason}",
            offset=exc.start,
            frame=frame,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "offset": self.offset,
            "frame_size": len(self.frame),
        }
