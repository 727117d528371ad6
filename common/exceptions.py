"""Exception hierarchy for chunked transfers."""

from typing import Optional


class ChunkRelayError(Exception):
    """
    Base exception class for all chunk transfer errors.
    """
    pass


class ConfigError(ChunkRelayError):
    """
    Raised when configuration values are missing or inconsistent.
    """
    pass


class TransportError(ChunkRelayError):
    """
    Raised when the messaging channel fails to send a chunk or resolve a payload.
    """
    pass


class ChunkSendError(TransportError):
    """
    Raised when sending one chunk fails and the remaining sequence is aborted.
    """

    def __init__(self, index: int, total: int, cause: Exception):
        self.index = index
        self.total = total
        self.cause = cause
        super().__init__(f"Failed to send chunk {index + 1}/{total}: {cause}")


class TransferCancelledError(ChunkRelayError):
    """
    Raised when a send sequence is cancelled between chunks.
    """

    def __init__(self, object_key: str, sent: int, total: int):
        self.object_key = object_key
        self.sent = sent
        self.total = total
        super().__init__(f"Transfer {object_key} cancelled after {sent}/{total} chunks")


class ChunkValidationError(ChunkRelayError):
    """
    Raised when chunk metadata or an object is not acceptable for transfer.
    """
    pass


class EmptyObjectError(ChunkValidationError):
    """
    Raised when attempting to split an object with no bytes.
    """
    pass


class NotOversizedError(ChunkValidationError):
    """
    Raised when an object fits in a single message and must be sent unsplit.
    """
    pass


class ObjectTooLargeError(ChunkValidationError):
    """
    Raised when an object exceeds the configured maximum object size.
    """
    pass


class MergeError(ChunkRelayError):
    """
    Base class for reassembly failures.
    """
    pass


class PayloadUnavailableError(MergeError):
    """
    Raised when a chunk payload cannot be resolved during reassembly.
    """

    def __init__(self, object_key: str, index: int, cause: Optional[Exception] = None):
        self.object_key = object_key
        self.index = index
        self.cause = cause
        super().__init__(f"Payload for chunk {index} of {object_key} unavailable: {cause}")


class SizeMismatchError(MergeError):
    """
    Reported when the reassembled size differs from the advertised object size.
    """

    def __init__(self, object_key: str, expected: int, actual: int):
        self.object_key = object_key
        self.expected = expected
        self.actual = actual
        super().__init__(f"{object_key}: expected {expected} bytes, assembled {actual}")


class IncompleteSetError(MergeError):
    """
    Raised when a chunk set handed to the reassembler is not exactly [0, total).
    """
    pass
