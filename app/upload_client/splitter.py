"""
Fixed-size partitioning of a file into chunk byte ranges.

split_ranges() is pure: the same size and chunk size always give the same
ranges. Ranges are half-open [start, end), in ascending order, with no gaps
or overlaps, and only the last one may be shorter than chunk_size.

Usage:
    from upload_client.splitter import split_ranges, read_chunk

    with open(path, "rb") as fh:
        for chunk_range in split_ranges(os.path.getsize(path)):
            data = read_chunk(fh, chunk_range)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import BinaryIO

DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024


@dataclass(frozen=True)
class ChunkRange:
    """Byte range [start, end) of chunk number index."""

    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


def count_chunks(file_size: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> int:
    """ceil(file_size / chunk_size); 0 for an empty file."""
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    if file_size < 0:
        raise ValueError("file_size cannot be negative")
    return math.ceil(file_size / chunk_size)


def split_ranges(file_size: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[ChunkRange]:
    """Partition [0, file_size) into consecutive ranges of chunk_size bytes."""
    return [
        ChunkRange(
            index=index,
            start=index * chunk_size,
            end=min((index + 1) * chunk_size, file_size),
        )
        for index in range(count_chunks(file_size, chunk_size))
    ]


def read_chunk(fileobj: BinaryIO, chunk_range: ChunkRange) -> bytes:
    """Read exactly the bytes of chunk_range from a seekable binary file."""
    fileobj.seek(chunk_range.start)
    data = fileobj.read(chunk_range.length)
    if len(data) != chunk_range.length:
        raise OSError(
            f"Short read for chunk {chunk_range.index}: "
            f"expected {chunk_range.length} bytes, got {len(data)}"
        )
    return data
