"""Streaming client for the Spark chat completion websocket API."""

from __future__ import annotations

from sparkchat.chat_client import SparkChat
from sparkchat.config import ChatSettings, Configuration
from sparkchat.llm import ProtocolVersion

__all__ = [
    "ChatSettings",
    "Configuration",
    "ProtocolVersion",
    "SparkChat",
]

__version__ = "0.1.0"
