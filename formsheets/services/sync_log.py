"""
Backup audit trail of sheet writes.

One entry is recorded per ingestion attempt, after the spreadsheet call has
finished. Recording is best effort: a broken audit store is logged and
otherwise ignored so it can never change the outcome reported to callers.
"""
import hashlib
import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from formsheets.services.db import DB
from formsheets.services.errors import LoggingError

logger = logging.getLogger(__name__)

DB_PATH = os.getenv("SYNC_LOG_DB_PATH", "sync_log.sqlite3")


class SyncStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


def payload_hash(payload: Optional[Mapping[str, Any]]) -> str:
    """Short fingerprint of a submission for correlating log entries."""
    encoded = json.dumps(payload or {}, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:16]


@dataclass(frozen=True)
class SyncLogEntry:
    form_type: str
    sheet_name: str
    row_count: int
    status: SyncStatus
    error_message: Optional[str] = None
    data_hash: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_record(self) -> Dict[str, Any]:
        """Audit row as persisted."""
        return {
            "table_name": self.form_type,
            "sheet_name": self.sheet_name,
            "row_count": self.row_count,
            "status": self.status.value,
            "error_message": self.error_message,
            "sync_timestamp": self.timestamp.isoformat(),
            "data_hash": self.data_hash,
        }


class SyncLogStore:
    """Persistence for ``SyncLogEntry`` records."""

    def __init__(self, db: Optional[DB] = None):
        self.db = db or DB(sqlite_path=DB_PATH)

    def init_db(self) -> None:
        self.db.execute("""
            CREATE TABLE IF NOT EXISTS sheet_sync_log (
                table_name TEXT NOT NULL,
                sheet_name TEXT NOT NULL,
                row_count INTEGER DEFAULT 0,
                status TEXT NOT NULL,
                error_message TEXT,
                sync_timestamp TEXT NOT NULL,
                data_hash TEXT
            )
        """)
        self.db.execute(
            "CREATE INDEX IF NOT EXISTS idx_sheet_sync_log_ts ON sheet_sync_log(sync_timestamp DESC)"
        )

    def insert(self, entry: SyncLogEntry) -> None:
        record = entry.to_record()
        try:
            self.db.execute("""
                INSERT INTO sheet_sync_log
                    (table_name, sheet_name, row_count, status, error_message, sync_timestamp, data_hash)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                record["table_name"],
                record["sheet_name"],
                record["row_count"],
                record["status"],
                record["error_message"],
                record["sync_timestamp"],
                record["data_hash"],
            ))
        except Exception as exc:
            raise LoggingError(str(exc)) from exc

    def recent(self, limit: int = 50, status: Optional[str] = None) -> List[Dict[str, Any]]:
        query = "SELECT * FROM sheet_sync_log"
        params: List[Any] = []
        if status:
            query += " WHERE status = ?"
            params.append(status)
        query += " ORDER BY sync_timestamp DESC LIMIT ?"
        params.append(limit)
        return self.db.fetchall_dict(query, tuple(params))


class SyncLogger:
    """Best-effort writer of audit entries."""

    def __init__(self, store: SyncLogStore):
        self.store = store

    def record(self, entry: SyncLogEntry) -> None:
        try:
            self.store.insert(entry)
        except LoggingError as exc:
            logger.warning(
                "Failed to log sheet sync for %s (%s): %s",
                entry.form_type,
                entry.status.value,
                exc.detail,
            )

    def recent(self, limit: int = 50, status: Optional[str] = None) -> List[Dict[str, Any]]:
        return self.store.recent(limit=limit, status=status)
