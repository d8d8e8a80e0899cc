"""
Websocket frame decoding and chunk accumulation.
"""

from __future__ import annotations

import json
import time

from pydantic import ValidationError

from ..exceptions import FrameDecodeError
from ..models import ResponseFrame
from .models import AccumulatorState, StreamChunk, StreamingStats


class FrameParser:
    """Decodes raw websocket messages into response frames."""

    def __init__(self):
        self.stats = {
            'total_frames': 0,
            'error_frames': 0,
        }

    def parse_frame(self, raw_data: str | bytes) -> ResponseFrame:
        """
        Decode one websocket message.

        Raises:
            FrameDecodeError: If the message is not JSON or not a frame object
        """
        try:
            data = json.loads(raw_data)
            if not isinstance(data, dict):
                raise TypeError(f"expected a JSON object, got {type(data).__name__}")
            frame = ResponseFrame.model_validate(data)
        except (json.JSONDecodeError, UnicodeDecodeError, TypeError, ValidationError) as e:
            self.stats['error_frames'] += 1
            raise FrameDecodeError(f"Frame decode error: {e}", raw_data=raw_data) from e

        self.stats['total_frames'] += 1
        return frame

    def get_stats(self) -> dict[str, int]:
        """Get decoding statistics for monitoring."""
        return self.stats.copy()


class ChunkAccumulator:
    """
    Turns decoded frames into stream chunks and tracks the answer so far.
    """

    def __init__(self):
        self.state = AccumulatorState()
        self._started_at = time.time()
        self._first_fragment_at: float | None = None

    def process_frame(self, frame: ResponseFrame) -> StreamChunk:
        """Process one frame into a typed stream chunk."""
        now = time.time()
        self.state.update_timing(now)

        content = frame.content
        if content:
            self.state.content_buffer += content
            self.state.content_frames += 1
            if self._first_fragment_at is None:
                self._first_fragment_at = now

        usage = None
        if frame.is_terminal and frame.payload.usage is not None:
            usage = frame.payload.usage.text

        return StreamChunk(
            content=content,
            accumulated_content=self.state.content_buffer,
            status=frame.header.status,
            seq=frame.payload.choices.seq,
            sid=frame.header.sid,
            is_final=frame.is_terminal,
            usage=usage,
            timestamp=now,
        )

    def get_streaming_stats(self) -> StreamingStats:
        first_fragment_latency = (
            self._first_fragment_at - self._started_at
            if self._first_fragment_at is not None else 0.0
        )
        return StreamingStats(
            total_frames=self.state.frame_count,
            content_frames=self.state.content_frames,
            total_characters=len(self.state.content_buffer),
            total_duration=self.state.streaming_duration,
            first_fragment_latency=first_fragment_latency,
        )

