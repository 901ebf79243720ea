import pytest

from formsheets.services.db import DB
from formsheets.services.sync_log import SyncLogEntry, SyncLogger, SyncLogStore, SyncStatus, payload_hash
from formsheets.services.errors import LoggingError


@pytest.fixture()
def store(tmp_path, monkeypatch) -> SyncLogStore:
    monkeypatch.delenv("DATABASE_URL", raising=False)
    store = SyncLogStore(DB(sqlite_path=str(tmp_path / "sync_log.sqlite3")))
    store.init_db()
    return store


def test_entries_are_persisted_newest_first(store):
    logger = SyncLogger(store)
    logger.record(SyncLogEntry("contact_submissions", "Contact Submissions", 1, SyncStatus.SUCCESS, data_hash="abc"))
    logger.record(SyncLogEntry(
        "agent_submissions", "Agent Submissions", 0, SyncStatus.ERROR, error_message="Google Sheets API error: HTTP 503"
    ))

    entries = logger.recent()

    assert [entry["table_name"] for entry in entries] == ["agent_submissions", "contact_submissions"]
    assert entries[0]["status"] == "error"
    assert entries[0]["row_count"] == 0
    assert entries[0]["error_message"] == "Google Sheets API error: HTTP 503"
    assert entries[1]["data_hash"] == "abc"
    assert entries[1]["sync_timestamp"].endswith("+00:00")


def test_recent_filters_by_status_and_limit(store):
    for index in range(3):
        store.insert(SyncLogEntry(f"form_{index}", "Form", 1, SyncStatus.SUCCESS))
    store.insert(SyncLogEntry("form_err", "Form", 0, SyncStatus.ERROR))

    assert len(store.recent(limit=2)) == 2
    assert [entry["table_name"] for entry in store.recent(status="error")] == ["form_err"]


def test_insert_failure_raises_logging_error(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    store = SyncLogStore(DB(sqlite_path=str(tmp_path / "no_table.sqlite3")))

    with pytest.raises(LoggingError):
        store.insert(SyncLogEntry("contact_submissions", "Contact Submissions", 1, SyncStatus.SUCCESS))


def test_logger_swallows_store_failures(tmp_path, monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    logger = SyncLogger(SyncLogStore(DB(sqlite_path=str(tmp_path / "no_table.sqlite3"))))

    logger.record(SyncLogEntry("contact_submissions", "Contact Submissions", 1, SyncStatus.SUCCESS))


def test_payload_hash_is_stable_and_order_independent():
    assert payload_hash({"a": 1, "b": 2}) == payload_hash({"b": 2, "a": 1})
    assert payload_hash(None) == payload_hash({})
    assert len(payload_hash({"a": 1})) == 16
