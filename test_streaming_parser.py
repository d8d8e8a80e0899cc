#!/usr/bin/env python3
"""
Tests for frame decoding and chunk accumulation.
"""

import json

import pytest

from sparkchat.llm.exceptions import FrameDecodeError, StreamingError
from sparkchat.llm.models import ResponseFrame
from sparkchat.llm.streaming import ChunkAccumulator, FrameParser


def _frame(content: str, status: int, seq: int = 0, usage: bool = False) -> ResponseFrame:
    data = {
        "header": {"code": 0, "message": "Success", "sid": "cht0001", "status": status},
        "payload": {
            "choices": {
                "status": status,
                "seq": seq,
                "text": [{"content": content, "role": "assistant", "index": 0}],
            }
        },
    }
    if usage:
        data["payload"]["usage"] = {"text": {"prompt_tokens": 1, "completion_tokens": 2,
                                             "total_tokens": 3}}
    return ResponseFrame.model_validate(data)


class TestFrameParser:
    """Test websocket message decoding."""

    def test_parse_text(self):
        parser = FrameParser()
        frame = parser.parse_frame(json.dumps({"header": {"status": 2}}))
        assert frame.is_terminal
        assert parser.get_stats() == {"total_frames": 1, "error_frames": 0}

    def test_parse_bytes(self):
        frame = FrameParser().parse_frame(b'{"header": {"sid": "abc"}}')
        assert frame.header.sid == "abc"

    @pytest.mark.parametrize("raw", [
        "not json",
        "{\"header\": ",
        "[1, 2, 3]",
        "42",
        "{\"header\": {\"status\": \"done\"}}",
        b"\xff\xfe",
    ])
    def test_malformed(self, raw):
        parser = FrameParser()
        with pytest.raises(FrameDecodeError) as exc_info:
            parser.parse_frame(raw)
        assert exc_info.value.raw_data == raw
        assert isinstance(exc_info.value, StreamingError)
        assert parser.get_stats()["error_frames"] == 1


class TestChunkAccumulator:
    """Test chunk accumulation."""

    def test_accumulates_content(self):
        accumulator = ChunkAccumulator()
        first = accumulator.process_frame(_frame("Hi", 0, seq=0))
        second = accumulator.process_frame(_frame(" there", 2, seq=1, usage=True))

        assert first.content == "Hi"
        assert first.accumulated_content == "Hi"
        assert not first.is_final
        assert first.usage is None
        assert second.content == " there"
        assert second.accumulated_content == "Hi there"
        assert second.is_final
        assert second.seq == 1
        assert second.sid == "cht0001"
        assert second.usage.total_tokens == 3

    def test_stats(self):
        accumulator = ChunkAccumulator()
        accumulator.process_frame(_frame("", 0))
        accumulator.process_frame(_frame("abc", 1))
        accumulator.process_frame(_frame("de", 2))

        stats = accumulator.get_streaming_stats()
        assert stats.total_frames == 3
        assert stats.content_frames == 2
        assert stats.total_characters == 5
        assert stats.total_duration >= 0.0
        assert stats.first_fragment_latency >= 0.0

