"""Send side: splits an object and sends its chunks one at a time."""

from sender.transfer_sender import SendReport, SendState, TransferSender

__all__ = [
    "SendReport",
    "SendState",
    "TransferSender",
]
