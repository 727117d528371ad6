"""Send-side orchestration: split an object and send its chunks sequentially."""

import asyncio
import inspect
import io
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Callable, Optional

from common.chunk_codec import (
    build_metadata,
    make_object_key,
    now_ms,
    part_name,
    plan_chunks,
    read_range,
)
from common.config import TransferConfig
from common.exceptions import (
    ChunkSendError,
    ObjectTooLargeError,
    TransferCancelledError,
    TransportError,
)
from common.logging_config import get_logger
from transport.base import TransportAdapter

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], Any]


class SendState(Enum):
    IDLE = "idle"
    SPLITTING = "splitting"
    SENDING = "sending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SendReport:
    """
    Summary of a finished send sequence.
    """
    object_key: str
    name: str
    total: int
    sent: int
    state: SendState


class TransferSender:
    """
    Splits objects into chunks and sends them one at a time.

    Each send is awaited before the next chunk is read, so at most one
    chunk is held in memory. There are no automatic retries: the first
    transport failure aborts the sequence and chunks already sent stay on
    the channel (the receiver evicts them once they expire).
    """

    def __init__(
        self,
        transport: TransportAdapter,
        config: Optional[TransferConfig] = None,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Args:
            transport: Channel the chunks are sent over
            config: Transfer configuration (chunk size, object size cap)
            clock: Millisecond clock used for object keys and metadata timestamps
        """
        self.transport = transport
        self.config = config or TransferConfig()
        self._clock = clock
        self.state = SendState.IDLE
        self.current_index: Optional[int] = None
        self._cancel_requested = False

    def cancel(self) -> None:
        """Request cancellation; honoured before the next chunk is sent."""
        if self.state in (SendState.SPLITTING, SendState.SENDING):
            logger.info("Cancellation requested")
            self._cancel_requested = True

    def check_size(self, size: int) -> None:
        """
        Pre-flight object size check against the configured cap.

        Raises:
            ObjectTooLargeError: If size exceeds max_object_size
        """
        limit = self.config.get_max_object_size()
        if limit is not None and size > limit:
            raise ObjectTooLargeError(
                f"Object of {size} bytes exceeds the {limit} byte limit"
            )

    async def send(
        self,
        source: BinaryIO,
        name: str,
        size: int,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SendReport:
        """
        Split an object and send every chunk in index order.

        Args:
            source: Seekable binary file object holding the object bytes
            name: Original object name
            size: Object size in bytes
            on_progress: Called with (completed_chunks, total) after each successful send

        Returns:
            SendReport for the completed transfer

        Raises:
            ChunkValidationError: If the object is empty, fits in one message or is too large
            ChunkSendError: If a chunk send fails (carries the failing index)
            TransferCancelledError: If cancel() was called mid-sequence
        """
        if self.state in (SendState.SPLITTING, SendState.SENDING):
            raise RuntimeError("A transfer is already in progress on this sender")
        if not name:
            raise ValueError("Object name must not be empty")

        self.check_size(size)
        plan = plan_chunks(size, self.config.get_chunk_size())

        self._cancel_requested = False
        self.current_index = None
        self.state = SendState.SPLITTING

        object_key = make_object_key(name, size, self._clock())
        metadata = build_metadata(plan, object_key, size, self._clock)
        total = len(plan)
        sent = 0

        logger.info(f"Sending {name} ({size} bytes) as {total} chunks [key={object_key}]")
        self.state = SendState.SENDING

        try:
            for chunk_range, meta in zip(plan, metadata):
                if self._cancel_requested:
                    raise TransferCancelledError(object_key, sent, total)

                payload = read_range(source, chunk_range)
                self.current_index = meta.index
                try:
                    await self.transport.send(meta, payload, part_name(name, meta.index, total))
                except TransportError as e:
                    raise ChunkSendError(meta.index, total, e) from e

                sent += 1
                logger.debug(f"Sent chunk {sent}/{total} of {object_key}")

                if on_progress is not None:
                    result = on_progress(sent, total)
                    if inspect.isawaitable(result):
                        await result

        except (TransferCancelledError, asyncio.CancelledError):
            self.state = SendState.CANCELLED
            logger.warning(f"Transfer {object_key} cancelled after {sent}/{total} chunks")
            raise
        except ChunkSendError as e:
            self.state = SendState.FAILED
            logger.error(f"Transfer {object_key} aborted: {e}")
            raise
        except Exception as e:
            self.state = SendState.FAILED
            logger.error(f"Transfer {object_key} aborted: {e}", exc_info=True)
            raise

        self.state = SendState.COMPLETED
        logger.info(f"Transfer {object_key} complete: {total} chunks sent")
        return SendReport(
            object_key=object_key,
            name=name,
            total=total,
            sent=sent,
            state=self.state,
        )

    async def send_file(self, path: Path, on_progress: Optional[ProgressCallback] = None) -> SendReport:
        """Send a file from disk under its base name."""
        path = Path(path)
        size = path.stat().st_size
        with open(path, "rb") as f:
            return await self.send(f, path.name, size, on_progress)

    async def send_bytes(
        self,
        name: str,
        data: bytes,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SendReport:
        """Send an in-memory object."""
        return await self.send(io.BytesIO(data), name, len(data), on_progress)
