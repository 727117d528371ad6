"""Receive-side orchestration: validate, cache, detect completion, merge."""

import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence

from common.exceptions import ChunkValidationError, MergeError
from common.logging_config import get_logger
from common.protocol import ChunkMetadata, check_metadata, parse_chunk_message
from common.types import ChunkRecord, InsertOutcome, PayloadRef
from receiver.assembly_cache import AssemblyCache
from receiver.reassembler import Reassembler, ReconstructedObject

logger = get_logger(__name__)


class DeliveryStatus(Enum):
    IGNORED = "ignored"
    REJECTED = "rejected"
    DUPLICATE = "duplicate"
    ACCEPTED = "accepted"
    COMPLETED = "completed"


class CompletedTransfer:
    """
    All chunks of one transfer, already removed from the cache.

    Merging is attempted at most once; after that the records are gone
    and the sender has to restart the transfer.
    """

    def __init__(self, object_key: str, records: List[ChunkRecord], reassembler: Reassembler):
        self.object_key = object_key
        self.records = records
        self._reassembler = reassembler
        self._consumed = False

    @property
    def total(self) -> int:
        return len(self.records)

    @property
    def object_size(self) -> int:
        return self.records[0].metadata.object_size

    @property
    def consumed(self) -> bool:
        return self._consumed

    async def merge(self) -> ReconstructedObject:
        """
        Reassemble the object.

        Raises:
            MergeError: On payload, ordering failures, or a second merge attempt
        """
        if self._consumed:
            raise MergeError(f"Transfer {self.object_key} was already merged")
        self._consumed = True
        return await self._reassembler.merge(self.records)


@dataclass(frozen=True)
class DeliveryReport:
    """
    What happened to one delivered message.
    """
    status: DeliveryStatus
    object_key: Optional[str] = None
    reason: Optional[str] = None
    received: int = 0
    total: int = 0
    reconstructed: Optional[ReconstructedObject] = None
    completed: Optional[CompletedTransfer] = None


async def _notify(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class TransferReceiver:
    """
    Entry point the host calls once per incoming chunk-shaped message.

    Policy:
        auto_merge=True   merge on completion and pass the object to on_object
        auto_merge=False  pass a CompletedTransfer to on_complete and let
                          the caller decide whether to merge it
    """

    def __init__(
        self,
        cache: AssemblyCache,
        reassembler: Reassembler,
        auto_merge: bool = True,
        on_object: Optional[Callable[[ReconstructedObject], Any]] = None,
        on_complete: Optional[Callable[[CompletedTransfer], Any]] = None,
        on_rejected: Optional[Callable[[ChunkMetadata, str], Any]] = None,
    ):
        self.cache = cache
        self.reassembler = reassembler
        self.auto_merge = auto_merge
        self.on_object = on_object
        self.on_complete = on_complete
        self.on_rejected = on_rejected

    async def handle_message(self, content: Optional[str], attachments: Sequence[PayloadRef]) -> DeliveryReport:
        """
        Deliver a raw channel message; messages without content or attachment are skipped.
        """
        if not content or not attachments:
            return DeliveryReport(DeliveryStatus.IGNORED)
        return await self.deliver(content, attachments[0])

    async def deliver(self, metadata: Any, payload_ref: PayloadRef) -> DeliveryReport:
        """
        Process one incoming chunk.

        Args:
            metadata: Message content (JSON text, mapping or ChunkMetadata)
            payload_ref: Reference to the message attachment

        Returns:
            DeliveryReport describing the outcome

        Raises:
            MergeError: With auto_merge, if the completed transfer cannot be merged
        """
        meta = parse_chunk_message(metadata)
        if meta is None or not payload_ref:
            return DeliveryReport(DeliveryStatus.IGNORED)

        try:
            check_metadata(meta)
        except ChunkValidationError as e:
            return await self._reject(meta, str(e))

        offer = self.cache.offer(ChunkRecord(metadata=meta, payload_ref=payload_ref))
        key = meta.object_key

        if offer.insert.outcome is InsertOutcome.REJECTED:
            return await self._reject(meta, offer.insert.reason)

        if offer.insert.outcome is InsertOutcome.DUPLICATE_IGNORED:
            logger.debug(f"Duplicate chunk {meta.index} for {key} ignored")
            return DeliveryReport(
                DeliveryStatus.DUPLICATE,
                object_key=key,
                received=self.cache.stored_count(key),
                total=meta.total,
            )

        if offer.completed is None:
            received = self.cache.stored_count(key)
            logger.debug(f"Stored chunk {meta.index} for {key} ({received}/{meta.total})")
            return DeliveryReport(
                DeliveryStatus.ACCEPTED,
                object_key=key,
                received=received,
                total=meta.total,
            )

        logger.info(f"All {meta.total} chunks received for {key}")
        completed = CompletedTransfer(key, offer.completed, self.reassembler)

        if not self.auto_merge:
            await _notify(self.on_complete, completed)
            return DeliveryReport(
                DeliveryStatus.COMPLETED,
                object_key=key,
                received=meta.total,
                total=meta.total,
                completed=completed,
            )

        try:
            obj = await completed.merge()
        except MergeError as e:
            logger.error(f"Merge failed for {key}: {e}")
            raise

        await _notify(self.on_object, obj)
        return DeliveryReport(
            DeliveryStatus.COMPLETED,
            object_key=key,
            received=meta.total,
            total=meta.total,
            reconstructed=obj,
            completed=completed,
        )

    async def _reject(self, meta: ChunkMetadata, reason: str) -> DeliveryReport:
        if self.on_rejected is None:
            logger.warning(f"Rejected chunk {meta.index} for {meta.object_key}: {reason}")
        else:
            await _notify(self.on_rejected, meta, reason)
        return DeliveryReport(
            DeliveryStatus.REJECTED,
            object_key=meta.object_key,
            reason=reason,
            total=meta.total,
        )
