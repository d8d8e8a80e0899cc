"""
Streaming-specific dataclasses for frame processing.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from ..models import UsageText


@dataclass(frozen=True)
class StreamChunk:
    """Processed answer fragment with accumulated state."""
    content: str
    accumulated_content: str
    status: int
    seq: int = 0
    sid: str = ""
    is_final: bool = False
    usage: UsageText | None = None
    timestamp: float = field(default_factory=time.time)


@dataclass
class AccumulatorState:
    """Mutable state for chunk accumulation."""
    content_buffer: str = ""
    frame_count: int = 0
    content_frames: int = 0
    first_frame_time: float | None = None
    last_frame_time: float | None = None

    def update_timing(self, timestamp: float) -> None:
        """Update timing information for latency tracking."""
        if self.first_frame_time is None:
            self.first_frame_time = timestamp
        self.last_frame_time = timestamp
        self.frame_count += 1

    @property
    def streaming_duration(self) -> float:
        if self.first_frame_time is None or self.last_frame_time is None:
            return 0.0
        return self.last_frame_time - self.first_frame_time


@dataclass(frozen=True)
class StreamingStats:
    """Statistics for one answer stream."""
    total_frames: int
    content_frames: int
    total_characters: int
    total_duration: float
    first_fragment_latency: float
