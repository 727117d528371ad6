"""
In-memory accumulator of received chunks, keyed by object key.

Entries are created by the first chunk of a transfer and removed either when
the transfer completes (take_complete) or when no chunk has been accepted
for longer than the expiry window (evict_expired). All operations share one
lock, so an eviction sweep can never remove an entry that a concurrent
delivery is completing.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from common.constants import EXPIRY_WINDOW_SECONDS
from common.logging_config import get_logger
from common.types import ChunkRecord, InsertOutcome, InsertResult

logger = get_logger(__name__)


@dataclass
class AssemblyEntry:
    """
    Chunks received so far for one object key.

    Attributes:
        object_key: Key shared by every record in the entry
        total: Chunk count fixed by the first accepted record
        object_size: Advertised object size fixed by the first accepted record
        records: Stored records by chunk index
        created_at: Local monotonic time the entry was created
        last_updated: Local monotonic time of the last accepted insertion
    """
    object_key: str
    total: int
    object_size: int
    created_at: float
    last_updated: float
    records: Dict[int, ChunkRecord] = field(default_factory=dict)

    @property
    def is_complete(self) -> bool:
        return len(self.records) == self.total


@dataclass(frozen=True)
class PendingTransfer:
    """
    Read-only snapshot of an incomplete transfer.
    """
    object_key: str
    received: int
    total: int
    object_size: int
    idle_seconds: float


@dataclass(frozen=True)
class OfferResult:
    """
    Result of AssemblyCache.offer: the insert outcome and, when this record
    completed its transfer, the records taken out of the cache.
    """
    insert: InsertResult
    completed: Optional[List[ChunkRecord]] = None


class AssemblyCache:
    """
    Thread-safe store of partially received transfers.

    Owned by whoever drives delivery; nothing outside this class touches
    the key -> entry mapping.
    """

    def __init__(
        self,
        expiry_window: float = EXPIRY_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize an empty cache.

        Args:
            expiry_window: Seconds without an accepted chunk before an entry is evicted
            clock: Local monotonic clock used for entry ages
        """
        self.expiry_window = expiry_window
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: Dict[str, AssemblyEntry] = {}

    def insert(self, record: ChunkRecord) -> InsertResult:
        """
        Store a chunk record.

        Args:
            record: Received chunk record

        Returns:
            ACCEPTED if stored, DUPLICATE_IGNORED if that index is already held,
            REJECTED if the record conflicts with the entry or is out of range
        """
        meta = record.metadata
        key = meta.object_key

        if meta.total < 1 or meta.index < 0 or meta.index >= meta.total:
            return InsertResult(
                InsertOutcome.REJECTED,
                key,
                f"index {meta.index} out of range for total {meta.total}",
            )

        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)

            if entry is None:
                entry = AssemblyEntry(
                    object_key=key,
                    total=meta.total,
                    object_size=meta.object_size,
                    created_at=now,
                    last_updated=now,
                )
                self._entries[key] = entry
                logger.debug(f"New assembly entry {key} ({meta.total} chunks)")
            elif meta.total != entry.total:
                return InsertResult(
                    InsertOutcome.REJECTED,
                    key,
                    f"total {meta.total} conflicts with stored total {entry.total}",
                )
            elif meta.object_size != entry.object_size:
                return InsertResult(
                    InsertOutcome.REJECTED,
                    key,
                    f"objectSize {meta.object_size} conflicts with stored size {entry.object_size}",
                )

            if meta.index in entry.records:
                return InsertResult(InsertOutcome.DUPLICATE_IGNORED, key)

            entry.records[meta.index] = record
            entry.last_updated = now
            return InsertResult(InsertOutcome.ACCEPTED, key)

    def is_complete(self, object_key: str) -> bool:
        """True iff every chunk of the transfer is stored."""
        with self._lock:
            entry = self._entries.get(object_key)
            return entry is not None and entry.is_complete

    def take_complete(self, object_key: str) -> Optional[List[ChunkRecord]]:
        """
        Remove and return a completed entry's records in index order.

        Returns:
            The records, or None (entry untouched) if absent or incomplete
        """
        with self._lock:
            entry = self._entries.get(object_key)
            if entry is None or not entry.is_complete:
                return None
            del self._entries[object_key]
            return [entry.records[i] for i in sorted(entry.records)]

    def offer(self, record: ChunkRecord) -> OfferResult:
        """
        Insert a record and, if that completes its transfer, take it.

        Both steps happen under one lock acquisition, so a completion is
        handed out exactly once.
        """
        with self._lock:
            result = self.insert(record)
            if result.accepted and self.is_complete(result.object_key):
                return OfferResult(result, self.take_complete(result.object_key))
            return OfferResult(result)

    def evict_expired(
        self,
        now: Optional[float] = None,
        expiry_window: Optional[float] = None,
    ) -> List[str]:
        """
        Drop every entry idle for longer than the expiry window.

        Args:
            now: Clock reading to compare against (defaults to the cache clock)
            expiry_window: Override of the configured window

        Returns:
            Keys of evicted entries
        """
        window = self.expiry_window if expiry_window is None else expiry_window
        with self._lock:
            current = self._clock() if now is None else now
            expired = [
                key for key, entry in self._entries.items()
                if current - entry.last_updated > window
            ]
            for key in expired:
                entry = self._entries.pop(key)
                logger.info(
                    f"Evicted stale transfer {key} "
                    f"({len(entry.records)}/{entry.total} chunks received)"
                )
            return expired

    def stored_count(self, object_key: str) -> int:
        """Number of distinct chunks stored for a key (0 if unknown)."""
        with self._lock:
            entry = self._entries.get(object_key)
            return len(entry.records) if entry else 0

    def pending(self) -> List[PendingTransfer]:
        """Snapshot of all incomplete transfers, oldest first."""
        with self._lock:
            now = self._clock()
            entries = sorted(self._entries.values(), key=lambda e: e.created_at)
            return [
                PendingTransfer(
                    object_key=entry.object_key,
                    received=len(entry.records),
                    total=entry.total,
                    object_size=entry.object_size,
                    idle_seconds=now - entry.last_updated,
                )
                for entry in entries
            ]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, object_key: str) -> bool:
        with self._lock:
            return object_key in self._entries
