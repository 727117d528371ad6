"""Orders a complete chunk set, resolves payloads and concatenates them."""

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from common.chunk_codec import object_name_from_key
from common.exceptions import (
    IncompleteSetError,
    PayloadUnavailableError,
    SizeMismatchError,
    TransportError,
)
from common.logging_config import get_logger
from common.types import ChunkRecord
from transport.base import TransportAdapter

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReconstructedObject:
    """
    Object rebuilt from its chunks.

    Attributes:
        object_key: Key of the transfer
        name: Original object name
        data: Concatenated payload bytes
        expected_size: objectSize advertised in the metadata
        size_mismatch: Set when len(data) != expected_size; data is kept anyway
    """
    object_key: str
    name: str
    data: bytes
    expected_size: int
    size_mismatch: Optional[SizeMismatchError] = None

    @property
    def size(self) -> int:
        return len(self.data)

    def save(self, directory: Path, overwrite: bool = False) -> Path:
        """
        Write the object into directory under its original name.

        Only the final path component of the name is used. Without
        overwrite, an existing file is kept and " (n)" is appended.

        Returns:
            Path of the written file
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)

        name = Path(self.name).name
        if name in ("", ".", ".."):
            name = "object.bin"

        target = directory / name
        if not overwrite:
            counter = 1
            while target.exists():
                target = directory / f"{Path(name).stem} ({counter}){Path(name).suffix}"
                counter += 1

        target.write_bytes(self.data)
        return target


class Reassembler:
    """Merges a complete set of chunk records into the original object."""

    def __init__(self, transport: TransportAdapter, concurrency: int = 1):
        """
        Args:
            transport: Adapter used to resolve payload references
            concurrency: Max payload resolutions in flight (1 = strictly serial)
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.transport = transport
        self.concurrency = concurrency

    async def merge(self, records: Sequence[ChunkRecord]) -> ReconstructedObject:
        """
        Rebuild an object from its chunk records.

        Args:
            records: All records of one transfer, in any order

        Returns:
            ReconstructedObject; a size mismatch is attached, not raised

        Raises:
            IncompleteSetError: If the set is not exactly indices [0, total) of one object
            PayloadUnavailableError: If any payload cannot be resolved
        """
        ordered = self._ordered(records)
        first = ordered[0].metadata

        payloads = await self._resolve_all(ordered)
        data = b"".join(payloads)

        size_mismatch = None
        if len(data) != first.object_size:
            size_mismatch = SizeMismatchError(first.object_key, first.object_size, len(data))
            logger.warning(f"Size mismatch after merge: {size_mismatch}")

        logger.info(f"Merged {len(ordered)} chunks for {first.object_key} ({len(data)} bytes)")

        return ReconstructedObject(
            object_key=first.object_key,
            name=object_name_from_key(first.object_key),
            data=data,
            expected_size=first.object_size,
            size_mismatch=size_mismatch,
        )

    def _ordered(self, records: Sequence[ChunkRecord]) -> List[ChunkRecord]:
        if not records:
            raise IncompleteSetError("No chunks to merge")

        key = records[0].object_key
        total = records[0].total
        for record in records:
            if record.object_key != key or record.total != total:
                raise IncompleteSetError(
                    f"Chunk set mixes transfers: {record.object_key}/{record.total} "
                    f"vs {key}/{total}"
                )

        ordered = sorted(records, key=lambda r: r.index)
        indices = [r.index for r in ordered]
        if indices != list(range(total)):
            missing = sorted(set(range(total)) - set(indices))
            raise IncompleteSetError(
                f"{key}: expected chunks 0..{total - 1}, "
                f"got {len(indices)} (missing {missing}, indices {indices[:10]})"
            )
        return ordered

    async def _resolve_all(self, ordered: List[ChunkRecord]) -> List[bytes]:
        if self.concurrency == 1:
            return [await self._resolve(record) for record in ordered]

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(record: ChunkRecord) -> bytes:
            async with semaphore:
                return await self._resolve(record)

        tasks = [asyncio.ensure_future(bounded(record)) for record in ordered]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _resolve(self, record: ChunkRecord) -> bytes:
        try:
            return await self.transport.resolve_payload(record.payload_ref)
        except TransportError as e:
            logger.error(f"Could not resolve chunk {record.index} of {record.object_key}: {e}")
            raise PayloadUnavailableError(record.object_key, record.index, e)
