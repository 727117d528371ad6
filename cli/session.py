"""Channel session: wires transport, sender, receiver and sweeper for the CLI."""

import json
import time
from pathlib import Path
from typing import Callable, Dict, List, Optional

from cli.utils import ChunkProgressPrinter, format_duration, format_file_size
from common.config import TransferConfig
from common.exceptions import (
    ChunkRelayError,
    ChunkSendError,
    ConfigError,
    MergeError,
    NotOversizedError,
)
from common.logging_config import get_logger
from receiver.assembly_cache import AssemblyCache
from receiver.eviction_task import EvictionSweeper
from receiver.reassembler import Reassembler, ReconstructedObject
from receiver.transfer_receiver import CompletedTransfer, DeliveryStatus, TransferReceiver
from sender.transfer_sender import ProgressCallback, TransferSender
from transport.directory import DirectoryTransport

logger = get_logger(__name__)


class ChannelSession:
    """
    One user's view of a directory channel.

    Holds the assembly cache for the lifetime of the REPL; every command
    goes through this object, so there is no module-level state.
    """

    def __init__(
        self,
        config: TransferConfig,
        transport: Optional[DirectoryTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize session.

        Args:
            config: Transfer configuration
            transport: Channel transport (defaults to the configured channel directory)
            clock: Monotonic clock shared by the cache and held transfers
        """
        self.config = config
        self._clock = clock
        self.transport = transport or DirectoryTransport(
            config.get_channel_dir(),
            max_payload_bytes=config.get_transport_limit(),
        )
        self.cache = AssemblyCache(expiry_window=config.get_expiry_window(), clock=clock)
        self.reassembler = Reassembler(self.transport, concurrency=config.get_resolve_concurrency())
        self.awaiting_confirmation: Dict[str, CompletedTransfer] = {}
        self._held_at: Dict[str, float] = {}
        self.receiver = TransferReceiver(
            self.cache,
            self.reassembler,
            auto_merge=config.get_auto_merge(),
            on_complete=self._hold_for_confirmation,
        )
        self.sender = TransferSender(self.transport, config)
        self.sweeper = EvictionSweeper(self.cache, interval_seconds=config.get_sweep_interval())
        logger.info(f"Session opened on channel {self.transport.root}")

    async def start(self) -> None:
        await self.sweeper.start()

    async def close(self) -> None:
        await self.sweeper.stop()
        await self.transport.close()

    def _hold_for_confirmation(self, completed: CompletedTransfer) -> None:
        self.awaiting_confirmation[completed.object_key] = completed
        self._held_at[completed.object_key] = self._clock()

    def _release(self, object_key: str) -> Optional[CompletedTransfer]:
        self._held_at.pop(object_key, None)
        return self.awaiting_confirmation.pop(object_key, None)

    def expire_held(self) -> List[str]:
        """
        Drop held transfers not accepted within the expiry window.

        Returns:
            Keys of dropped transfers
        """
        window = self.config.get_expiry_window()
        now = self._clock()
        expired = [key for key, held_at in self._held_at.items() if now - held_at > window]
        for key in expired:
            self._release(key)
            logger.info(f"Dropped unconfirmed transfer {key}")
        return expired

    async def send_file(self, file_path: str, on_progress: Optional[ProgressCallback] = None) -> str:
        """
        Split and send a file.

        Returns:
            User-facing result message
        """
        path = Path(file_path).expanduser()
        if not path.is_file():
            return f"Error: {file_path} is not a file"

        if on_progress is None:
            on_progress = ChunkProgressPrinter(path.name)

        try:
            report = await self.sender.send_file(path, on_progress=on_progress)
        except NotOversizedError:
            return f"{path.name} is small enough to be sent directly."
        except ChunkSendError as e:
            return f"Error: upload stopped at part {e.index + 1}/{e.total}: {e.cause}"
        except ChunkRelayError as e:
            return f"Error: {e}"

        return f"Successfully uploaded {report.total} parts for {report.name}"

    async def poll(self) -> str:
        """
        Deliver every new channel message.

        A transfer that fails to merge or save is reported on its own line;
        the rest of the batch is still delivered.

        Returns:
            One line per completed, failed or held transfer
        """
        self.expire_held()
        lines = []
        delivered = 0
        for message in self.transport.poll():
            try:
                report = await self.receiver.handle_message(message.content, message.attachments)
            except MergeError as e:
                lines.append(f"Merge failed: {e}")
                continue

            if report.status is not DeliveryStatus.IGNORED:
                delivered += 1
            if report.status is DeliveryStatus.REJECTED:
                lines.append(f"Rejected chunk for {report.object_key}: {report.reason}")
            elif report.status is DeliveryStatus.COMPLETED:
                if report.reconstructed is not None:
                    lines.append(self._save(report.reconstructed))
                else:
                    lines.append(
                        f"{report.object_key} complete, awaiting confirmation: accept {report.object_key}"
                    )

        lines.insert(0, f"Delivered {delivered} chunk message(s)")
        return "\n".join(lines)

    async def accept(self, object_key: str) -> str:
        """Merge a held transfer and save it."""
        self.expire_held()
        completed = self._release(object_key)
        if completed is None:
            return f"No completed transfer awaiting confirmation for {object_key}"
        try:
            obj = await completed.merge()
        except MergeError as e:
            return f"Merge failed: {e}"
        return self._save(obj)

    def discard(self, object_key: str) -> str:
        if self._release(object_key) is None:
            return f"No completed transfer awaiting confirmation for {object_key}"
        return f"Discarded {object_key}"

    def _save(self, obj: ReconstructedObject) -> str:
        try:
            path = obj.save(self.config.get_download_dir())
        except OSError as e:
            logger.error(f"Could not save {obj.name}: {e}")
            return f"Error: could not save {obj.name}: {e}"
        message = f"Merged {obj.name} ({format_file_size(obj.size)}) -> {path}"
        if obj.size_mismatch is not None:
            message += f"\nWarning: {obj.size_mismatch}"
        return message

    def pending(self) -> str:
        self.expire_held()
        transfers = self.cache.pending()
        if not transfers and not self.awaiting_confirmation:
            return "No transfers in progress"

        lines = [
            f"{t.object_key}: {t.received}/{t.total} parts, "
            f"{format_file_size(t.object_size)}, idle {format_duration(t.idle_seconds)}"
            for t in transfers
        ]
        lines.extend(
            f"{key}: complete, awaiting confirmation"
            for key in self.awaiting_confirmation
        )
        return "\n".join(lines)

    async def sweep(self) -> str:
        evicted = await self.sweeper.sweep_once() + self.expire_held()
        if not evicted:
            return "Nothing to evict"
        return f"Evicted {len(evicted)} stale transfer(s): {', '.join(evicted)}"

    def show_config(self) -> str:
        return json.dumps(self.config.data, indent=2, default=str)

    def set_config(self, key: str, raw_value: str) -> str:
        try:
            value = json.loads(raw_value)
        except ValueError:
            value = raw_value
        try:
            self.config.set(key, value)
        except ConfigError as e:
            return f"Error: {e}"

        if key == "channel_dir":
            return f"Set {key} = {value!r} (takes effect after restart)"
        self._apply_config()
        return f"Set {key} = {value!r}"

    def _apply_config(self) -> None:
        """Push live-tunable options into the running components."""
        self.cache.expiry_window = self.config.get_expiry_window()
        self.receiver.auto_merge = self.config.get_auto_merge()
        self.reassembler.concurrency = self.config.get_resolve_concurrency()
        self.sweeper.interval_seconds = self.config.get_sweep_interval()
        self.transport.max_payload_bytes = self.config.get_transport_limit()
