"""Transport adapters: the messaging channels chunks travel over."""

from transport.base import TransportAdapter
from transport.directory import DirectoryTransport
from transport.loopback import LoopbackTransport
from transport.webhook import WebhookTransport

__all__ = [
    "DirectoryTransport",
    "LoopbackTransport",
    "TransportAdapter",
    "WebhookTransport",
]
