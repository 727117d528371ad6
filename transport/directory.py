"""Shared-folder channel: each message is a JSON file plus its attachment file."""

import asyncio
import json
import os
import re
import uuid
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from common.exceptions import TransportError
from common.logging_config import get_logger
from common.protocol import ChunkMetadata
from common.types import PayloadRef
from transport.base import ChannelMessage, TransportAdapter

logger = get_logger(__name__)

MESSAGE_RE = re.compile(r"^(\d{8})\.json$")
ATTACHMENTS_DIR = "attachments"


class DirectoryTransport(TransportAdapter):
    """
    Channel backed by a directory that several processes can share.

    Layout:
        <root>/00000001.json                  message content + attachment names
        <root>/attachments/<token>-<filename>  attachment bytes

    Attachments and the message body are fully written before the message
    is published. Publishing hard-links the body to the next free sequence
    number, which fails instead of overwriting when another writer took
    that number first, so a reader never sees a half-written message and
    concurrent writers never clobber each other.
    """

    def __init__(self, root: Path, max_payload_bytes: Optional[int] = None):
        """
        Initialize the channel directory.

        Args:
            root: Channel directory (created if missing)
            max_payload_bytes: Per-attachment limit enforced on send
        """
        self.root = Path(root)
        self.attachments_dir = self.root / ATTACHMENTS_DIR
        self.max_payload_bytes = max_payload_bytes
        self._cursor = 0
        self.attachments_dir.mkdir(parents=True, exist_ok=True)

    async def send(self, metadata: ChunkMetadata, payload: bytes, filename: str) -> None:
        if self.max_payload_bytes is not None and len(payload) > self.max_payload_bytes:
            raise TransportError(
                f"Attachment {filename} is {len(payload)} bytes, "
                f"limit is {self.max_payload_bytes}"
            )
        await self.post(metadata.to_json(), [(filename, payload)])

    async def post(self, content: str, attachments: Sequence[Tuple[str, bytes]] = ()) -> int:
        """
        Write one message with optional attachments.

        Returns:
            Sequence number of the written message

        Raises:
            TransportError: If the channel directory cannot be written
        """
        try:
            return await asyncio.to_thread(self._write_message, content, list(attachments))
        except OSError as e:
            raise TransportError(f"Failed to write message to {self.root}: {e}")

    def _write_message(self, content: str, attachments: List[Tuple[str, bytes]]) -> int:
        token = uuid.uuid4().hex[:16]
        names = []
        for filename, data in attachments:
            safe_name = Path(filename).name
            attachment_name = f"{token}-{safe_name}"
            (self.attachments_dir / attachment_name).write_bytes(data)
            names.append(attachment_name)

        tmp_path = self.root / f".{token}.tmp"
        with open(tmp_path, "w") as f:
            json.dump({"content": content, "attachments": names}, f)

        try:
            seq = self._next_sequence()
            while True:
                try:
                    os.link(tmp_path, self.root / f"{seq:08d}.json")
                    break
                except FileExistsError:
                    seq += 1
        finally:
            tmp_path.unlink()

        logger.debug(f"Wrote message {seq} to {self.root} ({len(names)} attachment(s))")
        return seq

    def _next_sequence(self) -> int:
        sequences = self._message_sequences()
        return (sequences[-1] if sequences else 0) + 1

    def _message_sequences(self) -> List[int]:
        sequences = []
        for path in self.root.iterdir():
            match = MESSAGE_RE.match(path.name)
            if match:
                sequences.append(int(match.group(1)))
        return sorted(sequences)

    def poll(self) -> List[ChannelMessage]:
        """
        Read messages written since the previous poll, oldest first.

        Unreadable message files are logged and skipped.

        Returns:
            New channel messages with attachment paths as payload references
        """
        messages = []
        for seq in self._message_sequences():
            if seq <= self._cursor:
                continue
            path = self.root / f"{seq:08d}.json"
            try:
                with open(path, "r") as f:
                    raw = json.load(f)
                content = raw.get("content", "")
                refs = tuple(str(self.attachments_dir / name) for name in raw.get("attachments", []))
                messages.append(ChannelMessage(content=content, attachments=refs))
            except (ValueError, OSError, AttributeError) as e:
                logger.warning(f"Skipping unreadable message {path}: {e}")
            self._cursor = seq
        return messages

    def rewind(self) -> None:
        """Reset the poll cursor so the whole channel history is read again."""
        self._cursor = 0

    async def resolve_payload(self, payload_ref: PayloadRef) -> bytes:
        path = Path(payload_ref)
        try:
            path.resolve().relative_to(self.attachments_dir.resolve())
        except ValueError:
            raise TransportError(f"Payload reference outside channel: {payload_ref}")

        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise TransportError(f"Failed to read attachment {payload_ref}: {e}")
