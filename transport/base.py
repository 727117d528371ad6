"""Transport adapter interface between the transfer core and a messaging channel."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Tuple

from common.protocol import ChunkMetadata
from common.types import PayloadRef


class TransportAdapter(ABC):
    """
    Messaging channel as seen by the transfer core.

    Implementations carry one chunk per message: the metadata as message
    content and the payload as an attachment. Failures surface as
    TransportError.
    """

    max_payload_bytes: Optional[int] = None

    @abstractmethod
    async def send(self, metadata: ChunkMetadata, payload: bytes, filename: str) -> None:
        """
        Transmit one chunk.

        Args:
            metadata: Chunk metadata sent as message content
            payload: Chunk bytes sent as the attachment
            filename: Attachment file name

        Raises:
            TransportError: If the message could not be sent
        """

    @abstractmethod
    async def resolve_payload(self, payload_ref: PayloadRef) -> bytes:
        """
        Fetch the raw bytes behind a received attachment reference.

        Raises:
            TransportError: If the reference cannot be resolved
        """

    async def close(self) -> None:
        """Release transport resources."""


@dataclass(frozen=True)
class ChannelMessage:
    """
    One message observed on a channel: text content plus attachment references.
    """
    content: str
    attachments: Tuple[PayloadRef, ...] = ()
