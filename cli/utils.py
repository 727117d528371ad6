"""Utility functions for CLI output."""

import sys
from typing import TextIO

from cli.constants import GREEN, RESET


class ChunkProgressPrinter:
    """Progress callback that redraws a one-line chunk counter."""

    def __init__(self, name: str, stream: TextIO = sys.stdout):
        """
        Args:
            name: Display name of the object being sent
            stream: Output stream (stdout by default)
        """
        self.name = name
        self.stream = stream

    def __call__(self, completed: int, total: int) -> None:
        percent = (completed / total) * 100 if total else 100.0
        self.stream.write(
            f"\rSending {self.name}: {completed}/{total} chunks ({GREEN}{percent:.1f}%{RESET})"
        )
        if completed >= total:
            self.stream.write("\n")
        self.stream.flush()


def format_file_size(size_bytes: int) -> str:
    """
    Format a size in bytes using binary units (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    size = size_bytes / 1024.0
    for unit in ['KiB', 'MiB', 'GiB', 'TiB']:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"


def format_duration(seconds: float) -> str:
    """Format an idle time as e.g. "42s" or "3m 05s"."""
    seconds = int(seconds)
    if seconds < 60:
        return f"{seconds}s"
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes}m {seconds:02d}s"
