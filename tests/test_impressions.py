"""Tests for the impression record implementations."""

from datetime import datetime, timedelta, timezone

import pytest

from notiproof_engine.impressions.store import InMemoryImpressionRecord, SQLiteImpressionRecord

NOW = datetime(2026, 10, 17, 12, 0, 0, 250000, tzinfo=timezone.utc)


@pytest.fixture(params=["memory", "sqlite"])
def record(request):
    if request.param == "memory":
        yield InMemoryImpressionRecord()
    else:
        store = SQLiteImpressionRecord(":memory:")
        yield store
        store.close()


class TestImpressionRecord:
    def test_empty_record(self, record):
        assert record.get_session_count("c1", "s1") == 0
        assert record.get_user_count("c1", "u1") == 0
        assert record.get_last_impression_time("c1", "s1") is None
        assert record.get_sequence_index("p1", "s1") == 0
        assert record.get_impression_counter("p1", "s1") == 0

    def test_counts_by_session_and_user(self, record):
        record.record_impression("c1", "s1", "u1", NOW)
        record.record_impression("c1", "s2", "u1", NOW + timedelta(minutes=1))
        record.record_impression("c2", "s1", "u1", NOW + timedelta(minutes=2))
        assert record.get_session_count("c1", "s1") == 1
        assert record.get_user_count("c1", "u1") == 2
        assert record.get_session_total("s1", ["c1", "c2"]) == 2
        assert record.get_session_total("s1", []) == 0

    def test_last_impression_time(self, record):
        record.record_impression("c1", "s1", "u1", NOW)
        record.record_impression("c1", "s1", "u1", NOW + timedelta(seconds=90))
        assert record.get_last_impression_time("c1", "s1") == NOW + timedelta(seconds=90)
        assert record.get_last_impression_time("c1", "other") is None

    def test_naive_and_aware_timestamps_mix(self, record):
        record.record_impression("c1", "s1", "u1", datetime(2026, 10, 17, 12, 0))
        later = datetime(2026, 10, 17, 14, 30, tzinfo=timezone(timedelta(hours=2)))
        record.record_impression("c1", "s1", "u1", later)
        last = record.get_last_impression_time("c1", "s1")
        assert last == datetime(2026, 10, 17, 12, 30, tzinfo=timezone.utc)
        assert last.tzinfo == timezone.utc

    def test_counter_only_moves_for_playlist_impressions(self, record):
        record.record_impression("c1", "s1", "u1", NOW)
        record.record_impression("c1", "s1", "u1", NOW, playlist_id="p1")
        record.record_impression("c2", "s1", "u1", NOW, playlist_id="p1")
        assert record.get_impression_counter("p1", "s1") == 2
        assert record.get_impression_counter("p1", "s2") == 0

    def test_set_sequence_index(self, record):
        record.set_sequence_index("p1", "s1", 2)
        assert record.get_sequence_index("p1", "s1") == 2
        record.set_sequence_index("p1", "s1", 0)
        assert record.get_sequence_index("p1", "s1") == 0

    def test_advance_wraps(self, record):
        steps = [record.advance_sequence_index("p1", "s1", 3) for _ in range(4)]
        assert steps == [1, 2, 0, 1]

    def test_advance_single_campaign_playlist(self, record):
        assert record.advance_sequence_index("p1", "s1", 1) == 0
        assert record.advance_sequence_index("p1", "s1", 1) == 0

    def test_cursor_and_counter_independent(self, record):
        record.record_impression("c1", "s1", "u1", NOW, playlist_id="p1")
        record.set_sequence_index("p1", "s1", 1)
        assert record.get_impression_counter("p1", "s1") == 1
        assert record.get_sequence_index("p1", "s1") == 1


class TestSQLiteImpressionRecord:
    def test_persists_across_connections(self, tmp_path):
        db_path = str(tmp_path / "impressions.db")
        first = SQLiteImpressionRecord(db_path)
        first.record_impression("c1", "s1", "u1", NOW, playlist_id="p1")
        first.advance_sequence_index("p1", "s1", 3)
        first.close()

        second = SQLiteImpressionRecord(db_path)
        assert second.get_session_count("c1", "s1") == 1
        assert second.get_last_impression_time("c1", "s1") == NOW
        assert second.get_impression_counter("p1", "s1") == 1
        assert second.get_sequence_index("p1", "s1") == 1
        second.close()

    def test_interleaved_advances_never_lose_a_step(self, tmp_path):
        """Two handles on one database both advancing: every step lands."""
        db_path = str(tmp_path / "cursor.db")
        a = SQLiteImpressionRecord(db_path)
        b = SQLiteImpressionRecord(db_path)
        for _ in range(5):
            a.advance_sequence_index("p1", "s1", 100)
            b.advance_sequence_index("p1", "s1", 100)
        assert a.get_sequence_index("p1", "s1") == 10
        a.close()
        b.close()
