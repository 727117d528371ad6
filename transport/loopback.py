"""In-memory channel: messages sent are delivered to subscribed handlers in order."""

import itertools
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from common.exceptions import TransportError
from common.logging_config import get_logger
from common.protocol import ChunkMetadata
from common.types import PayloadRef
from transport.base import ChannelMessage, TransportAdapter

logger = get_logger(__name__)

MessageHandler = Callable[[str, List[PayloadRef]], Awaitable[Any]]


class LoopbackTransport(TransportAdapter):
    """
    Channel that lives entirely in process memory.

    Every message is recorded in ``messages`` and pushed to subscribers.
    Handler failures are logged and do not propagate back to the sender,
    the same way a remote receiver's failure never reaches the sending side.
    """

    def __init__(self, max_payload_bytes: Optional[int] = None):
        self.max_payload_bytes = max_payload_bytes
        self.messages: List[ChannelMessage] = []
        self._payloads: Dict[PayloadRef, bytes] = {}
        self._handlers: List[MessageHandler] = []
        self._counter = itertools.count(1)

    def subscribe(self, handler: MessageHandler) -> None:
        """Register an async handler called with (content, attachments) per message."""
        self._handlers.append(handler)

    def unsubscribe(self, handler: MessageHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def send(self, metadata: ChunkMetadata, payload: bytes, filename: str) -> None:
        if self.max_payload_bytes is not None and len(payload) > self.max_payload_bytes:
            raise TransportError(
                f"Attachment {filename} is {len(payload)} bytes, "
                f"limit is {self.max_payload_bytes}"
            )

        ref = f"loopback://{next(self._counter)}/{filename}"
        self._payloads[ref] = bytes(payload)
        await self.post(metadata.to_json(), [ref])

    async def post(self, content: str, attachments: Iterable[PayloadRef] = ()) -> None:
        """Put an arbitrary message on the channel (chunk or unrelated traffic)."""
        message = ChannelMessage(content=content, attachments=tuple(attachments))
        self.messages.append(message)
        await self._dispatch(message)

    async def replay(self, messages: Iterable[ChannelMessage]) -> None:
        """Deliver already-recorded messages again, e.g. to simulate reordering or duplicates."""
        for message in messages:
            await self._dispatch(message)

    async def _dispatch(self, message: ChannelMessage) -> None:
        for handler in list(self._handlers):
            try:
                await handler(message.content, list(message.attachments))
            except Exception as e:
                logger.error(f"Loopback handler failed: {e}", exc_info=True)

    async def resolve_payload(self, payload_ref: PayloadRef) -> bytes:
        try:
            return self._payloads[payload_ref]
        except KeyError:
            raise TransportError(f"Unknown or expired payload reference: {payload_ref}")

    def revoke(self, payload_ref: PayloadRef) -> None:
        """Forget a stored payload so later resolution fails."""
        self._payloads.pop(payload_ref, None)
