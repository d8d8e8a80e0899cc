"""
Spark chat client.

This module handles one question per websocket connection:
- Signed connection URL generation through the Authenticator
- A single-turn request built from the configured sampling options
- The read loop that decodes frames until the terminal status
- Forwarding answer fragments to the output sink as they arrive

Only one question may be outstanding per client. A second call made while
one is in flight is turned away with a message on the output sink rather
than queued.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import aclosing
from datetime import datetime
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from sparkchat.config import ChatSettings, Configuration
from sparkchat.llm.auth import Authenticator
from sparkchat.llm.exceptions import (
    SparkConnectionError,
    SparkServerError,
    StreamingError,
    StreamTimeoutError,
)
from sparkchat.llm.models import ChatRequest, Credentials, ResponseFrame
from sparkchat.llm.streaming import (
    ChunkAccumulator,
    FrameParser,
    StreamChunk,
    StreamingStats,
)
from sparkchat.logging_utils import ContextualLogger, log_operation, operation_context

EMPTY_QUESTION_MESSAGE = "please enter your question"
BUSY_MESSAGE = "please wait"


class SparkChat:
    """
    Streaming chat client for the Spark websocket API.

    Options accepted as keyword arguments (invalid values are ignored):
    version, temperature, max_tokens, top_k, output, receive_timeout,
    uid, url_template.
    """

    def __init__(
        self,
        app_id: str,
        api_key: str,
        api_secret: str,
        *,
        settings: ChatSettings | None = None,
        **options: Any,
    ) -> None:
        self.credentials = Credentials(app_id, api_key, api_secret)
        self.settings = (settings or ChatSettings()).apply(**options)
        self.authenticator = Authenticator(self.credentials)
        self.last_stats: StreamingStats | None = None
        self._lock = asyncio.Lock()
        self._log = ContextualLogger({"app_id": app_id})

    @classmethod
    def from_config(cls, config: Configuration, **overrides: Any) -> SparkChat:
        """Create a client from environment credentials and YAML options."""
        credentials = config.credentials
        return cls(
            credentials.app_id,
            credentials.api_key,
            credentials.api_secret,
            settings=config.build_settings(**overrides),
        )

    @property
    def in_flight(self) -> bool:
        """Whether a question is currently being answered."""
        return self._lock.locked()

    def signed_url(self, now: datetime | None = None) -> str:
        return self.authenticator.signed_url(self.settings.base_url, now=now)

    def build_request(self, question: str) -> ChatRequest:
        return ChatRequest.for_question(
            question,
            app_id=self.credentials.app_id,
            uid=self.settings.uid,
            domain=self.settings.domain,
            temperature=self.settings.temperature,
            max_tokens=self.settings.max_tokens,
            top_k=self.settings.top_k,
        )

    def _emit(self, text: str) -> None:
        output = self.settings.output
        output.write(text)
        flush = getattr(output, "flush", None)
        if callable(flush):
            flush()

    @log_operation("spark_ask")
    async def ask(self, question: str) -> None:
        """
        Ask one question and write the answer to the output sink.

        Fragments are written as soon as they arrive. Nothing is returned;
        the sink is the only channel for the answer text.

        Raises:
            SparkConnectionError: If the websocket could not be opened
            StreamingError: If the stream broke or a frame was malformed
            SparkServerError: If the server reported an error code
        """
        async for chunk in self.stream(question):
            if chunk.content:
                self._emit(chunk.content)

    async def stream(self, question: str) -> AsyncIterator[StreamChunk]:
        """
        Ask one question and yield answer chunks as they arrive.

        The iterator is finite and cannot be restarted. Callers that may
        stop early should close it (e.g. with contextlib.aclosing) so the
        connection is released promptly.
        """
        question = question.strip()
        if not question:
            self._emit(f"{EMPTY_QUESTION_MESSAGE}\n")
            return

        if self._lock.locked():
            self._log.warning("Question rejected, another is in flight")
            self._emit(f"{BUSY_MESSAGE}\n")
            return

        async with self._lock:
            context = {
                "app_id": self.credentials.app_id,
                "version": self.settings.version.name,
            }
            async with operation_context("spark_chat", context=context) as op_log:
                request = self.build_request(question)
                websocket = await self._connect()
                try:
                    await self._send(websocket, request)

                    parser = FrameParser()
                    accumulator = ChunkAccumulator()
                    try:
                        frames = self._read_frames(websocket, parser, accumulator)
                        async with aclosing(frames) as chunks:
                            async for chunk in chunks:
                                yield chunk
                    finally:
                        self.last_stats = accumulator.get_streaming_stats()
                        decode_stats = parser.get_stats()
                        op_log.info(
                            "Answer stream finished",
                            frames=decode_stats["total_frames"],
                            decode_errors=decode_stats["error_frames"],
                            characters=self.last_stats.total_characters,
                            duration_s=round(self.last_stats.total_duration, 3),
                        )
                finally:
                    await websocket.close()
                    self._log.debug("Connection closed")

    async def _connect(self) -> Any:
        url = self.signed_url()
        base_url = self.settings.base_url
        try:
            websocket = await websockets.connect(url)
        except (OSError, TimeoutError, WebSocketException) as e:
            raise SparkConnectionError(
                f"Failed to connect to {base_url}: {e}", url=base_url
            ) from e
        self._log.debug("Connection opened", url=base_url)
        return websocket

    async def _send(self, websocket: Any, request: ChatRequest) -> None:
        try:
            await websocket.send(request.model_dump_json())
        except ConnectionClosed as e:
            raise StreamingError(f"Connection closed before the request was sent: {e}") from e

    async def _read_frames(
        self, websocket: Any, parser: FrameParser, accumulator: ChunkAccumulator
    ) -> AsyncIterator[StreamChunk]:
        while True:
            raw = await self._receive(websocket)
            frame = parser.parse_frame(raw)
            self._check_frame(frame)

            chunk = accumulator.process_frame(frame)
            yield chunk
            if chunk.is_final:
                return

    async def _receive(self, websocket: Any) -> str | bytes:
        timeout = self.settings.receive_timeout
        try:
            if timeout is None:
                return await websocket.recv()
            return await asyncio.wait_for(websocket.recv(), timeout)
        except TimeoutError as e:
            raise StreamTimeoutError(
                f"No frame received within {timeout}s", timeout=timeout
            ) from e
        except ConnectionClosed as e:
            raise StreamingError(
                f"Connection closed before the answer completed: {e}"
            ) from e

    @staticmethod
    def _check_frame(frame: ResponseFrame) -> None:
        header = frame.header
        if header.code != 0:
            raise SparkServerError(
                f"Spark error {header.code}: {header.message}",
                status_code=header.code,
                sid=header.sid,
                response_data=frame.model_dump(),
            )

    async def close(self) -> None:
        """Connections are per question, so there is nothing to release."""
        self._log.debug("Client closed")

    async def __aenter__(self) -> SparkChat:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
