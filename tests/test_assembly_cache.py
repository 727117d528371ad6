"""Tests for AssemblyCache insertion, completion and eviction."""

import threading

from conftest import FakeClock, make_records

from common.protocol import make_metadata
from common.types import ChunkRecord, InsertOutcome
from receiver.assembly_cache import AssemblyCache


def record(index, total=3, key="video.mp4:25:1", size=25, ref=None):
    meta = make_metadata(index=index, total=total, object_key=key, object_size=size, timestamp=1)
    return ChunkRecord(metadata=meta, payload_ref=ref or f"ref-{key}-{index}")


class TestInsert:
    """Test record insertion outcomes."""

    def test_first_record_creates_entry(self, cache):
        result = cache.insert(record(0))

        assert result.outcome == InsertOutcome.ACCEPTED
        assert result.accepted
        assert "video.mp4:25:1" in cache
        assert cache.stored_count("video.mp4:25:1") == 1

    def test_duplicate_index_ignored(self, cache):
        cache.insert(record(1, ref="first"))

        result = cache.insert(record(1, ref="second"))

        assert result.outcome == InsertOutcome.DUPLICATE_IGNORED
        assert cache.stored_count("video.mp4:25:1") == 1

    def test_duplicate_keeps_first_payload_ref(self, cache):
        cache.insert(record(0, total=2, ref="first"))
        cache.insert(record(0, total=2, ref="second"))
        cache.insert(record(1, total=2))

        records = cache.take_complete("video.mp4:25:1")

        assert records[0].payload_ref == "first"

    def test_conflicting_total_rejected(self, cache):
        cache.insert(record(0, total=3))

        result = cache.insert(record(1, total=4))

        assert result.outcome == InsertOutcome.REJECTED
        assert "total" in result.reason
        assert cache.stored_count("video.mp4:25:1") == 1

    def test_conflicting_object_size_rejected(self, cache):
        cache.insert(record(0, size=25))

        result = cache.insert(record(1, size=30))

        assert result.outcome == InsertOutcome.REJECTED
        assert "objectSize" in result.reason

    def test_out_of_range_index_rejected_without_creating_entry(self, cache):
        result = cache.insert(record(3, total=3))

        assert result.outcome == InsertOutcome.REJECTED
        assert "video.mp4:25:1" not in cache
        assert len(cache) == 0

    def test_negative_index_rejected(self, cache):
        assert cache.insert(record(-1)).outcome == InsertOutcome.REJECTED

    def test_transfers_kept_separate(self, cache):
        cache.insert(record(0, key="a:25:1"))
        cache.insert(record(0, key="b:25:1"))

        assert len(cache) == 2
        assert cache.stored_count("a:25:1") == 1
        assert cache.stored_count("unknown") == 0


class TestCompletion:
    """Test completeness detection and take semantics."""

    def test_complete_after_all_indices(self, cache):
        for i in (2, 0):
            cache.insert(record(i))
        assert not cache.is_complete("video.mp4:25:1")

        cache.insert(record(1))

        assert cache.is_complete("video.mp4:25:1")

    def test_take_complete_returns_ordered_and_removes(self, cache):
        for i in (2, 0, 1):
            cache.insert(record(i))

        records = cache.take_complete("video.mp4:25:1")

        assert [r.index for r in records] == [0, 1, 2]
        assert "video.mp4:25:1" not in cache
        assert cache.take_complete("video.mp4:25:1") is None

    def test_take_incomplete_leaves_entry(self, cache):
        cache.insert(record(0))

        assert cache.take_complete("video.mp4:25:1") is None
        assert cache.stored_count("video.mp4:25:1") == 1

    def test_unknown_key_not_complete(self, cache):
        assert not cache.is_complete("nothing")
        assert cache.take_complete("nothing") is None

    def test_offer_hands_out_completion_once(self, cache):
        assert cache.offer(record(0)).completed is None
        assert cache.offer(record(1)).completed is None

        result = cache.offer(record(2))

        assert result.insert.accepted
        assert [r.index for r in result.completed] == [0, 1, 2]
        assert len(cache) == 0

    def test_late_duplicate_after_completion_starts_fresh_entry(self, cache):
        for i in range(3):
            cache.offer(record(i))

        result = cache.offer(record(1))

        assert result.insert.outcome == InsertOutcome.ACCEPTED
        assert result.completed is None
        assert cache.stored_count("video.mp4:25:1") == 1

    def test_concurrent_offers_complete_exactly_once(self, fake_transport):
        cache = AssemblyCache()
        records = make_records(bytes(200), 10, fake_transport)
        completions = []
        barrier = threading.Barrier(len(records))

        def deliver(rec):
            barrier.wait()
            result = cache.offer(rec)
            if result.completed is not None:
                completions.append(result.completed)

        threads = [threading.Thread(target=deliver, args=(rec,)) for rec in records]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(completions) == 1
        assert [r.index for r in completions[0]] == list(range(20))
        assert len(cache) == 0


class TestEviction:
    """Test expiry of idle transfers."""

    def test_idle_entry_evicted(self, cache, clock):
        cache.insert(record(0))
        clock.advance(301)

        evicted = cache.evict_expired()

        assert evicted == ["video.mp4:25:1"]
        assert len(cache) == 0

    def test_entry_within_window_kept(self, cache, clock):
        cache.insert(record(0))
        clock.advance(300)

        assert cache.evict_expired() == []
        assert "video.mp4:25:1" in cache

    def test_accepted_insert_refreshes_age(self, cache, clock):
        cache.insert(record(0))
        clock.advance(200)
        cache.insert(record(1))
        clock.advance(200)

        assert cache.evict_expired() == []

    def test_duplicate_does_not_refresh_age(self, cache, clock):
        cache.insert(record(0))
        clock.advance(200)
        cache.insert(record(0))
        clock.advance(200)

        assert cache.evict_expired() == ["video.mp4:25:1"]

    def test_rejected_does_not_refresh_age(self, cache, clock):
        cache.insert(record(0))
        clock.advance(200)
        cache.insert(record(1, total=9))
        clock.advance(200)

        assert cache.evict_expired() == ["video.mp4:25:1"]

    def test_window_and_now_overrides(self, cache, clock):
        cache.insert(record(0))

        assert cache.evict_expired(now=clock.now + 10, expiry_window=5) == ["video.mp4:25:1"]

    def test_only_stale_entries_evicted(self, cache, clock):
        cache.insert(record(0, key="old:25:1"))
        clock.advance(250)
        cache.insert(record(0, key="new:25:1"))
        clock.advance(100)

        assert cache.evict_expired() == ["old:25:1"]
        assert "new:25:1" in cache

    def test_chunk_after_eviction_creates_new_entry(self, cache, clock):
        cache.insert(record(0))
        cache.insert(record(1))
        clock.advance(301)
        cache.evict_expired()

        cache.insert(record(2))

        assert cache.stored_count("video.mp4:25:1") == 1
        assert not cache.is_complete("video.mp4:25:1")


class TestPending:
    """Test the pending transfer snapshot."""

    def test_pending_snapshot(self):
        clock = FakeClock(start=0.0)
        cache = AssemblyCache(clock=clock)
        cache.insert(record(0, key="first:25:1"))
        clock.advance(10)
        cache.insert(record(0, key="second:25:1", total=2, size=15))
        cache.insert(record(1, key="first:25:1"))
        clock.advance(5)

        pending = cache.pending()

        assert [p.object_key for p in pending] == ["first:25:1", "second:25:1"]
        assert pending[0].received == 2
        assert pending[0].total == 3
        assert pending[0].idle_seconds == 5
        assert pending[1].object_size == 15
        assert pending[1].idle_seconds == 5

    def test_empty_cache_has_no_pending(self, cache):
        assert cache.pending() == []
