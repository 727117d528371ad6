"""Receive side: assembly cache, reassembly and delivery orchestration."""

from receiver.assembly_cache import AssemblyCache, AssemblyEntry, OfferResult, PendingTransfer
from receiver.eviction_task import EvictionSweeper
from receiver.reassembler import Reassembler, ReconstructedObject
from receiver.transfer_receiver import (
    CompletedTransfer,
    DeliveryReport,
    DeliveryStatus,
    TransferReceiver,
)

__all__ = [
    "AssemblyCache",
    "AssemblyEntry",
    "CompletedTransfer",
    "DeliveryReport",
    "DeliveryStatus",
    "EvictionSweeper",
    "OfferResult",
    "PendingTransfer",
    "Reassembler",
    "ReconstructedObject",
    "TransferReceiver",
]
