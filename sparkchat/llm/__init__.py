"""
Spark protocol layer.

This package provides:
- Pydantic wire models for requests and response frames
- The version lookup table (endpoint path, domain, token ceiling)
- Signed URL authentication
- Frame decoding and chunk accumulation
- The exception hierarchy
"""

from __future__ import annotations

from .auth import Authenticator, hmac_sha256, rfc1123_date
from .exceptions import (
    FrameDecodeError,
    SparkConnectionError,
    SparkError,
    SparkServerError,
    StreamingError,
    StreamTimeoutError,
)
from .models import (
    TERMINAL_STATUS,
    VERSION_SPECS,
    ChatRequest,
    Credentials,
    ProtocolVersion,
    ResponseFrame,
    UsageText,
    VersionSpec,
)

__all__ = [
    "Authenticator",
    "ChatRequest",
    "Credentials",
    "FrameDecodeError",
    "ProtocolVersion",
    "ResponseFrame",
    "SparkConnectionError",
    "SparkError",
    "SparkServerError",
    "StreamTimeoutError",
    "StreamingError",
    "TERMINAL_STATUS",
    "UsageText",
    "VERSION_SPECS",
    "VersionSpec",
    "hmac_sha256",
    "rfc1123_date",
]
