"""
Tests unitarios para los errores estructurados de la sesión.
"""

import httpx

from eventsource_session._errors import EventSourceError, SSEDecodeError, TransportError


class TestTransportError:
    """Tests para TransportError."""

    def test_error_creation_minimal(self):
        error = TransportError(message="connection reset")

        assert error.message == "connection reset"
        assert error.url is None
        assert error.status_code is None
        assert error.cancelled is False
        assert error.cause is None
        assert isinstance(error, EventSourceError)
        assert isinstance(error, RuntimeError)

    def test_str_includes_set_fields(self):
        error = TransportError(
            message="bad gateway",
            url="https://example.com/stream",
            status_code=502,
            cause=ValueError("x"),
        )
        s = str(error)

        assert "TransportError" in s
        assert "bad gateway" in s
        assert "https://example.com/stream" in s
        assert "502" in s
        assert "ValueError" in s

    def test_cancelled_flag(self):
        error = TransportError(message="cancelled", cancelled=True)

        assert error.is_cancelled is True
        assert "cancelled=True" in str(error)

    def test_from_exception_keeps_cause(self):
        exc = httpx.ConnectError("connection refused")

        error = TransportError.from_exception(exc, url="http://localhost:1")

        assert error.message == "connection refused"
        assert error.url == "http://localhost:1"
        assert error.cause is exc
        assert error.status_code is None

    def test_from_status_exception_extracts_status(self):
        request = httpx.Request("GET", "https://example.com/stream")
        response = httpx.Response(503, request=request)
        exc = httpx.HTTPStatusError("unavailable", request=request, response=response)

        error = TransportError.from_exception(exc, url=str(request.url))

        assert error.status_code == 503

    def test_to_dict(self):
        error = TransportError(message="m", url="u", status_code=500)

        d = error.to_dict()

        assert d == {
            "message": "m",
            "url": "u",
            "status_code": 500,
            "cancelled": False,
            "cause": None,
        }


class TestSSEDecodeError:
    """Tests para SSEDecodeError."""

    def test_from_unicode_error(self):
        frame = b"data: \xff"
        try:
            frame.decode("utf-8")
        except UnicodeDecodeError as e:
            error = SSEDecodeError.from_unicode_error(e, frame)

        assert error.offset == 6
        assert error.frame == frame
        assert "invalid UTF-8" in error.message
        assert "offset=6" in str(error)
        assert error.to_dict() == {"message": error.message, "offset": 6, "frame_size": len(frame)}
