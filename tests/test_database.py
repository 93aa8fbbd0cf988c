"""Tests for cache database operations."""

import pytest

from openweather_provider.database import CacheDatabase


@pytest.fixture
def db(tmp_path):
    """Create temporary database."""
    return CacheDatabase(db_path=tmp_path / "test.db")


def test_empty_database(db):
    """Test a new database has no entries."""
    assert db.load_entries() == []


def test_save_and_load_entry(db):
    """Test entry round trip."""
    db.save_entry("10.0:20.0", {"current": {"temp": 290.5}}, 1234.5)

    [entry] = db.load_entries()

    assert entry == {
        "cell_key": "10.0:20.0",
        "payload": {"current": {"temp": 290.5}},
        "fetched_at": 1234.5,
    }


def test_save_replaces_entry(db):
    """Test saving the same cell twice keeps only the latest."""
    db.save_entry("10.0:20.0", {"v": 1}, 100.0)
    db.save_entry("10.0:20.0", {"v": 2}, 200.0)

    entries = db.load_entries()

    assert len(entries) == 1
    assert entries[0]["payload"] == {"v": 2}
    assert entries[0]["fetched_at"] == 200.0


def test_load_skips_unreadable_rows(db):
    """Test corrupted payloads are ignored."""
    db.save_entry("1.0:1.0", {"v": 1}, 100.0)
    with db._get_connection() as conn:
        conn.execute(
            "INSERT INTO weather_cache (cell_key, payload, fetched_at) VALUES (?, ?, ?)",
            ("2.0:2.0", "{not json", 100.0),
        )
        conn.commit()

    entries = db.load_entries()

    assert [e["cell_key"] for e in entries] == ["1.0:1.0"]


def test_delete_fetched_before(db):
    """Test pruning by fetch time, cutoff inclusive."""
    db.save_entry("1.0:1.0", {"v": 1}, 100.0)
    db.save_entry("1.5:1.5", {"v": 1}, 200.0)
    db.save_entry("2.0:2.0", {"v": 2}, 300.0)

    deleted = db.delete_fetched_before(200.0)

    assert deleted == 2
    assert [e["cell_key"] for e in db.load_entries()] == ["2.0:2.0"]


def test_clear(db):
    """Test clearing all entries."""
    db.save_entry("1.0:1.0", {"v": 1}, 100.0)
    db.clear()
    assert db.load_entries() == []


def test_creates_parent_directory(tmp_path):
    """Test the database directory is created if missing."""
    db = CacheDatabase(db_path=tmp_path / "nested" / "dir" / "cache.db")
    db.save_entry("1.0:1.0", [], 1.0)
    assert (tmp_path / "nested" / "dir" / "cache.db").exists()
