"""Splits an object into ordered, size-bounded chunk ranges and their metadata."""

import math
import time
from typing import BinaryIO, Callable, Iterator, List, Sequence, Tuple

from common.constants import PART_INDEX_MIN_WIDTH
from common.exceptions import EmptyObjectError, NotOversizedError
from common.protocol import ChunkMetadata, make_metadata
from common.types import ChunkRange


def now_ms() -> int:
    """Wall clock in milliseconds since epoch."""
    return int(time.time() * 1000)


def make_object_key(name: str, size: int, started_at_ms: int) -> str:
    """
    Build the key that groups all chunks of one transfer.

    Name alone collides when two same-named files are in flight, so the
    size and the transfer start time are folded in.

    Args:
        name: Original object name
        size: Object size in bytes
        started_at_ms: Transfer start time in milliseconds

    Returns:
        Object key of the form "<name>:<size>:<started_at_ms>"
    """
    return f"{name}:{size}:{started_at_ms}"


def object_name_from_key(object_key: str) -> str:
    """
    Recover the original object name from an object key.

    Keys produced by peers that key by name alone are returned unchanged.
    """
    parts = object_key.rsplit(":", 2)
    if len(parts) == 3 and parts[1].isdigit() and parts[2].isdigit() and parts[0]:
        return parts[0]
    return object_key


def plan_chunks(object_size: int, chunk_size: int) -> List[ChunkRange]:
    """
    Partition an object of object_size bytes into chunk ranges.

    Args:
        object_size: Total object length in bytes
        chunk_size: Maximum chunk length in bytes

    Returns:
        Ranges [i*chunk_size, min((i+1)*chunk_size, object_size)) for each chunk

    Raises:
        ValueError: If chunk_size is not positive
        EmptyObjectError: If the object is empty
        NotOversizedError: If the object fits in a single chunk
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if object_size <= 0:
        raise EmptyObjectError("Nothing to transfer: object is empty")
    if object_size <= chunk_size:
        raise NotOversizedError(
            f"Object of {object_size} bytes fits in one message "
            f"(chunk size {chunk_size}); send it unsplit"
        )

    total = math.ceil(object_size / chunk_size)
    return [
        ChunkRange(
            index=i,
            start=i * chunk_size,
            end=min((i + 1) * chunk_size, object_size),
        )
        for i in range(total)
    ]


def build_metadata(
    plan: Sequence[ChunkRange],
    object_key: str,
    object_size: int,
    clock: Callable[[], int] = now_ms,
) -> List[ChunkMetadata]:
    """Produce one metadata record per planned chunk."""
    total = len(plan)
    return [
        make_metadata(
            index=chunk_range.index,
            total=total,
            object_key=object_key,
            object_size=object_size,
            timestamp=clock(),
        )
        for chunk_range in plan
    ]


def part_name(name: str, index: int, total: int) -> str:
    """
    Attachment file name for a chunk, e.g. "video.mp4.part001".

    The part number is 1-based and zero-padded for lexical sorting; it is
    cosmetic, ordering always comes from the metadata index.
    """
    width = max(PART_INDEX_MIN_WIDTH, len(str(total)))
    return f"{name}.part{index + 1:0{width}d}"


def read_range(source: BinaryIO, chunk_range: ChunkRange) -> bytes:
    """Read exactly one chunk range from a seekable binary file object."""
    source.seek(chunk_range.start)
    data = source.read(chunk_range.length)
    if len(data) != chunk_range.length:
        raise IOError(
            f"Short read for chunk {chunk_range.index}: "
            f"expected {chunk_range.length} bytes, got {len(data)}"
        )
    return data


def iter_chunks(
    source: BinaryIO,
    plan: Sequence[ChunkRange],
    metadata: Sequence[ChunkMetadata],
) -> Iterator[Tuple[ChunkMetadata, bytes]]:
    """
    Lazily yield (metadata, payload) pairs; only one payload is read at a time.
    """
    for chunk_range, meta in zip(plan, metadata):
        yield meta, read_range(source, chunk_range)
