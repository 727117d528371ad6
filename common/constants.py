"""Project-wide constants (chunk sizing, timeouts, wire tags)."""

CHUNK_KIND: str = "FileSplitterChunk"

MIB: int = 1024 * 1024

CHUNK_SIZE_BYTES: int = int(24.5 * MIB)  # just under the 25 MiB attachment limit
TRANSPORT_LIMIT_BYTES: int = 25 * MIB
MAX_OBJECT_SIZE_BYTES: int = 500 * MIB

EXPIRY_WINDOW_SECONDS: float = 5 * 60
SWEEP_INTERVAL_SECONDS: float = 60

PART_INDEX_MIN_WIDTH: int = 3

DEFAULT_CONFIG_PATH: str = "~/.chunkrelay/config.json"
DEFAULT_CHANNEL_DIR: str = "./channel"
DEFAULT_DOWNLOAD_DIR: str = "./downloads"
