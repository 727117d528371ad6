"""Shared pytest fixtures for all tests."""

from typing import Dict, List, Optional, Set

import pytest

from common.chunk_codec import build_metadata, make_object_key, plan_chunks
from common.config import TransferConfig
from common.exceptions import TransportError
from common.protocol import ChunkMetadata
from common.types import ChunkRecord
from receiver.assembly_cache import AssemblyCache
from transport.base import TransportAdapter


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransport(TransportAdapter):
    """Transport that records sends and serves payloads from a dict."""

    def __init__(self, fail_on_index: Optional[int] = None):
        self.sent: List[tuple] = []
        self.payloads: Dict[str, bytes] = {}
        self.unavailable: Set[str] = set()
        self.resolved: List[str] = []
        self.fail_on_index = fail_on_index

    async def send(self, metadata: ChunkMetadata, payload: bytes, filename: str) -> None:
        if metadata.index == self.fail_on_index:
            raise TransportError("quota exceeded")
        self.sent.append((metadata, payload, filename))

    async def resolve_payload(self, payload_ref: str) -> bytes:
        self.resolved.append(payload_ref)
        if payload_ref in self.unavailable or payload_ref not in self.payloads:
            raise TransportError(f"expired reference {payload_ref}")
        return self.payloads[payload_ref]


def make_records(
    data: bytes,
    chunk_size: int,
    transport: FakeTransport,
    name: str = "video.mp4",
    started_at_ms: int = 1700000000000,
) -> List[ChunkRecord]:
    """Split data and register every chunk payload with the fake transport."""
    plan = plan_chunks(len(data), chunk_size)
    key = make_object_key(name, len(data), started_at_ms)
    metadata = build_metadata(plan, key, len(data), clock=lambda: started_at_ms)
    records = []
    for chunk_range, meta in zip(plan, metadata):
        ref = f"ref://{key}/{meta.index}"
        transport.payloads[ref] = data[chunk_range.start:chunk_range.end]
        records.append(ChunkRecord(metadata=meta, payload_ref=ref))
    return records


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return AssemblyCache(expiry_window=300, clock=clock)


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def small_config():
    """
    Config with tiny chunks so tests work on a few dozen bytes.
    """
    return TransferConfig(
        chunk_size=10,
        transport_limit=16,
        max_object_size=1000,
        expiry_window_seconds=300,
        sweep_interval_seconds=60,
    )


@pytest.fixture
def sample_bytes():
    """25 distinct bytes: three chunks of 10, 10 and 5 bytes at chunk_size=10."""
    return bytes(range(65, 90))


@pytest.fixture
def sample_file(tmp_path, sample_bytes):
    file_path = tmp_path / 'report.bin'
    file_path.write_bytes(sample_bytes)
    return file_path
