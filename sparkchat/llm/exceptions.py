"""
Error handling for Spark chat operations.

This module provides the exception hierarchy raised by the client:
- Connection failures while opening the websocket
- Transport failures while the answer is streaming
- Malformed frames and receive timeouts
- Error codes reported by the server in a frame header
"""

from __future__ import annotations

from typing import Any


class SparkError(Exception):
    """Base Spark error with rich context."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        sid: str | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.sid = sid
        self.response_data = response_data or {}


class SparkConnectionError(SparkError):
    """The websocket connection could not be established."""

    def __init__(self, message: str, url: str | None = None, **kwargs):
        super().__init__(message, **kwargs)
        self.url = url


class StreamingError(SparkError):
    """Streaming-specific errors."""
    pass


class FrameDecodeError(StreamingError):
    """An inbound frame could not be decoded."""

    def __init__(self, message: str, raw_data: str | bytes = "", **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data


class StreamTimeoutError(StreamingError):
    """No frame arrived within the configured receive timeout."""

    def __init__(self, message: str, timeout: float, **kwargs):
        super().__init__(message, **kwargs)
        self.timeout = timeout


class SparkServerError(SparkError):
    """The server reported a non-zero code in a frame header."""
    pass
