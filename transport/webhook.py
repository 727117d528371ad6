"""HTTP webhook channel: chunks are posted as multipart messages, payloads fetched by URL."""

import asyncio
import json
from typing import Any, Mapping, Optional

import aiohttp

from common.constants import TRANSPORT_LIMIT_BYTES
from common.exceptions import TransportError
from common.logging_config import get_logger
from common.protocol import ChunkMetadata
from common.types import PayloadRef
from transport.base import ChannelMessage, TransportAdapter

logger = get_logger(__name__)


class WebhookTransport(TransportAdapter):
    """
    Sends each chunk to a chat webhook as one message with one attachment.

    The metadata JSON becomes the message content (``payload_json``) and the
    chunk bytes are uploaded as ``files[0]``. Received attachments are
    resolved by downloading their URL.
    """

    def __init__(
        self,
        webhook_url: str,
        max_payload_bytes: Optional[int] = TRANSPORT_LIMIT_BYTES,
        timeout_seconds: float = 120.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize webhook transport.

        Args:
            webhook_url: Full webhook URL messages are posted to
            max_payload_bytes: Attachment size ceiling of the channel
            timeout_seconds: Total timeout per HTTP request
            session: Optional shared aiohttp session (caller keeps ownership)
        """
        self.webhook_url = webhook_url
        self.max_payload_bytes = max_payload_bytes
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self._session

    async def send(self, metadata: ChunkMetadata, payload: bytes, filename: str) -> None:
        if self.max_payload_bytes is not None and len(payload) > self.max_payload_bytes:
            raise TransportError(
                f"Attachment {filename} is {len(payload)} bytes, "
                f"limit is {self.max_payload_bytes}"
            )

        form = aiohttp.FormData()
        form.add_field(
            "payload_json",
            json.dumps({"content": metadata.to_json()}),
            content_type="application/json",
        )
        form.add_field(
            "files[0]",
            payload,
            filename=filename,
            content_type="application/octet-stream",
        )

        session = await self._get_session()
        try:
            async with session.post(self.webhook_url, data=form, params={"wait": "true"}) as resp:
                if resp.status >= 300:
                    detail = await resp.text()
                    raise TransportError(
                        f"Webhook rejected {filename}: HTTP {resp.status} {detail[:200]}"
                    )
                logger.debug(f"Posted {filename} to {self.webhook_url} (HTTP {resp.status})")
        except asyncio.TimeoutError:
            raise TransportError(f"Timed out posting {filename}")
        except aiohttp.ClientError as e:
            raise TransportError(f"Failed to post {filename}: {e}")

    async def resolve_payload(self, payload_ref: PayloadRef) -> bytes:
        session = await self._get_session()
        try:
            async with session.get(payload_ref) as resp:
                if resp.status != 200:
                    raise TransportError(f"Attachment fetch returned HTTP {resp.status}: {payload_ref}")
                return await resp.read()
        except asyncio.TimeoutError:
            raise TransportError(f"Timed out fetching {payload_ref}")
        except aiohttp.ClientError as e:
            raise TransportError(f"Failed to fetch {payload_ref}: {e}")

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    @staticmethod
    def message_from_event(event: Mapping[str, Any]) -> ChannelMessage:
        """
        Convert a chat message event into a ChannelMessage.

        Args:
            event: Message object with "content" and an "attachments" list of {"url": ...}

        Returns:
            ChannelMessage whose attachments are the attachment URLs
        """
        attachments = tuple(
            attachment["url"]
            for attachment in event.get("attachments") or ()
            if isinstance(attachment, Mapping) and attachment.get("url")
        )
        return ChannelMessage(content=event.get("content") or "", attachments=attachments)
