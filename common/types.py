"""Shared data type definitions (ChunkRange, ChunkRecord, insert outcomes)."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from common.protocol import ChunkMetadata

PayloadRef = str


@dataclass(frozen=True)
class ChunkRange:
    """
    Byte range [start, end) of one chunk within its object.
    """
    index: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True)
class ChunkRecord:
    """
    Received chunk: its metadata plus a reference the transport can resolve to bytes.
    """
    metadata: ChunkMetadata
    payload_ref: PayloadRef

    @property
    def object_key(self) -> str:
        return self.metadata.object_key

    @property
    def index(self) -> int:
        return self.metadata.index

    @property
    def total(self) -> int:
        return self.metadata.total


class InsertOutcome(Enum):
    ACCEPTED = "accepted"
    DUPLICATE_IGNORED = "duplicate_ignored"
    REJECTED = "rejected"


@dataclass(frozen=True)
class InsertResult:
    """
    Result of inserting a chunk record into the assembly cache.
    """
    outcome: InsertOutcome
    object_key: str
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.outcome is InsertOutcome.ACCEPTED
