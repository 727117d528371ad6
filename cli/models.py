"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class SendCommand:
    """Split and send one file."""

    file_path: str
    command: Literal["send"] = "send"


@dataclass(frozen=True)
class PollCommand:
    """Deliver new channel messages."""

    command: Literal["poll"] = "poll"


@dataclass(frozen=True)
class PendingCommand:
    """List incomplete transfers."""

    command: Literal["pending"] = "pending"


@dataclass(frozen=True)
class AcceptCommand:
    """Merge a completed transfer awaiting confirmation."""

    object_key: str
    command: Literal["accept"] = "accept"


@dataclass(frozen=True)
class DiscardCommand:
    """Drop a completed transfer awaiting confirmation."""

    object_key: str
    command: Literal["discard"] = "discard"


@dataclass(frozen=True)
class SweepCommand:
    """Run one eviction sweep now."""

    command: Literal["sweep"] = "sweep"


@dataclass(frozen=True)
class ConfigCommand:
    """Show configuration, or set one option when key and value are given."""

    key: str | None = None
    value: str | None = None
    command: Literal["config"] = "config"


CommandRequest = (
    SendCommand
    | PollCommand
    | PendingCommand
    | AcceptCommand
    | DiscardCommand
    | SweepCommand
    | ConfigCommand
)
