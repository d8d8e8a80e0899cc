"""
Streaming functionality for the Spark client.

This package contains:
- Frame decoding
- Chunk accumulation
- Streaming statistics
"""

from .models import StreamChunk, StreamingStats
from .parser import ChunkAccumulator, FrameParser

__all__ = [
    "ChunkAccumulator",
    "FrameParser",
    "StreamChunk",
    "StreamingStats",
]
