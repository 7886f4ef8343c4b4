"""Persistence contract for scan results and the SQLite reference store."""

from __future__ import annotations

import json
import sqlite3
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable

from scan_service.dto.payloads import Payload
from scan_service.dto.scan_result import ScanKind
from scan_service.processor.errors import StorageError
from scan_service.utils.utils import ensure_dir, setup_logging

# qr and barcode share the broader "other" category
STORAGE_CATEGORIES: dict[ScanKind, str] = {
    ScanKind.UPI: "upi",
    ScanKind.RECEIPT: "receipt",
    ScanKind.QR: "other",
    ScanKind.BARCODE: "other",
}


def storage_category(kind: ScanKind) -> str:
    return STORAGE_CATEGORIES[kind]


@runtime_checkable
class ScanStore(Protocol):
    def create_scan(self, kind: ScanKind, raw_content: str, payload: Payload, confidence: float) -> str:
        """Persist a scan and return its storage id; raise StorageError on failure."""
        ...


class SqliteScanStore:
    """Stores scans in a `barcode_scans` table, one connection per call."""

    def __init__(self, db_path: str, log_level: int = 20) -> None:
        self.db_path = db_path
        self.log = setup_logging(component_name="storage", log_level=log_level)
        self._init_db()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        try:
            ensure_dir(self.db_path)
            with self._connect() as conn:
                conn.execute("""
                CREATE TABLE IF NOT EXISTS barcode_scans (
                    id TEXT PRIMARY KEY,
                    scan_type TEXT NOT NULL,
                    raw_content TEXT NOT NULL,
                    parsed_data TEXT NOT NULL,
                    confidence REAL NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'processed',
                    created_at TEXT NOT NULL
                )
                """)
                conn.execute("CREATE INDEX IF NOT EXISTS idx_barcode_scans_created ON barcode_scans(created_at)")
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"could not initialise scan store at {self.db_path}: {exc}") from exc

    def create_scan(self, kind: ScanKind, raw_content: str, payload: Payload, confidence: float) -> str:
        scan_id = uuid.uuid4().hex
        parsed_data = json.dumps(payload.model_dump(mode="json"), ensure_ascii=False)
        created_at = datetime.now(timezone.utc).isoformat()

        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO barcode_scans (id, scan_type, raw_content, parsed_data, confidence, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (scan_id, storage_category(kind), raw_content, parsed_data, float(confidence), created_at),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"could not save scan: {exc}") from exc

        self.log.debug("saved scan %s as %s", scan_id, storage_category(kind))
        return scan_id

    @staticmethod
    def _row_to_dict(row: sqlite3.Row) -> dict[str, Any]:
        record = dict(row)
        record["parsed_data"] = json.loads(record["parsed_data"])
        return record

    def get_scan(self, scan_id: str) -> dict[str, Any] | None:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT * FROM barcode_scans WHERE id = ?", (scan_id,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"could not read scan {scan_id}: {exc}") from exc
        return self._row_to_dict(row) if row else None

    def list_scans(self, limit: int = 50) -> list[dict[str, Any]]:
        """Most recent scans first."""
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM barcode_scans ORDER BY created_at DESC LIMIT ?", (int(limit),)
                ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"could not list scans: {exc}") from exc
        return [self._row_to_dict(row) for row in rows]
