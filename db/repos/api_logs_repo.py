from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from models.api_log_entry import ApiLogEntry


logger = logging.getLogger(__name__)

_COLUMNS = (
    "id, cui, request_url, http_method, request_headers, request_body, response_status, "
    "response_headers, response_body, request_duration, error_message, user_ip, created_at"
)


def _timestamp(moment: Optional[datetime] = None) -> str:
    # Fixed-width UTC ISO text so created_at compares correctly as a string
    return (moment or datetime.now(timezone.utc)).astimezone(timezone.utc).isoformat(timespec="microseconds")


def _row_to_entry(row: tuple) -> ApiLogEntry:
    keys = [k.strip() for k in _COLUMNS.split(",")]
    return ApiLogEntry(**{k: row[i] for i, k in enumerate(keys)})


class ApiLogsRepo:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def log_api_request(
        self,
        *,
        cui: str,
        request_url: str,
        http_method: str,
        request_headers: Optional[Dict[str, Any]],
        request_body: Optional[str],
        response_status: int,
        response_headers: Optional[Dict[str, Any]],
        response_body: Optional[str],
        request_duration: Optional[float],
        error_message: Optional[str] = None,
        user_ip: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Optional[int]:
        """Insert one audit row. Returns the new id, or None when the write failed.

        Failures are logged and swallowed so a broken audit store never fails a lookup.
        """
        try:
            if not cui or not request_url or not http_method or response_status is None:
                raise ValueError("cui, request_url, http_method and response_status are required")
            ts = _timestamp(created_at)
            cur = self.conn.cursor()
            cur.execute(
                (
                    "INSERT INTO api_logs (cui, request_url, http_method, request_headers, request_body, "
                    "response_status, response_headers, response_body, request_duration, error_message, "
                    "user_ip, created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
                ),
                (
                    cui,
                    request_url,
                    http_method,
                    json.dumps(request_headers or {}, ensure_ascii=False),
                    request_body,
                    int(response_status),
                    json.dumps(response_headers or {}, ensure_ascii=False),
                    response_body,
                    round(request_duration, 4) if request_duration is not None else None,
                    error_message,
                    user_ip,
                    ts,
                    ts,
                ),
            )
            self.conn.commit()
            return int(cur.lastrowid)
        except Exception as e:
            logger.error("Failed to log API request: %s", e, extra={"cui": cui, "error": type(e).__name__})
            return None

    def record(self, entry: ApiLogEntry) -> Optional[int]:
        """Audit sink entry point used by the provider client."""
        try:
            headers_in = json.loads(entry.request_headers) if entry.request_headers else {}
            headers_out = json.loads(entry.response_headers) if entry.response_headers else {}
        except ValueError:
            headers_in, headers_out = {"raw": entry.request_headers}, {"raw": entry.response_headers}
        return self.log_api_request(
            cui=entry.cui,
            request_url=entry.request_url,
            http_method=entry.http_method,
            request_headers=headers_in,
            request_body=entry.request_body,
            response_status=entry.response_status,
            response_headers=headers_out,
            response_body=entry.response_body,
            request_duration=entry.request_duration,
            error_message=entry.error_message,
            user_ip=entry.user_ip,
        )

    def get(self, log_id: int) -> Optional[ApiLogEntry]:
        cur = self.conn.cursor()
        cur.execute(f"SELECT {_COLUMNS} FROM api_logs WHERE id = ?", (log_id,))
        row = cur.fetchone()
        return _row_to_entry(row) if row else None

    def recent(self, limit: int = 100) -> List[ApiLogEntry]:
        cur = self.conn.cursor()
        cur.execute(f"SELECT {_COLUMNS} FROM api_logs ORDER BY created_at DESC, id DESC LIMIT ?", (limit,))
        return [_row_to_entry(r) for r in cur.fetchall()]

    def for_cui(self, cui: str, limit: int = 50) -> List[ApiLogEntry]:
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT {_COLUMNS} FROM api_logs WHERE cui = ? ORDER BY created_at DESC, id DESC LIMIT ?",
            (cui, limit),
        )
        return [_row_to_entry(r) for r in cur.fetchall()]

    def errors(self, limit: int = 10) -> List[ApiLogEntry]:
        cur = self.conn.cursor()
        cur.execute(
            f"SELECT {_COLUMNS} FROM api_logs WHERE error_message IS NOT NULL "
            "ORDER BY created_at DESC, id DESC LIMIT ?",
            (limit,),
        )
        return [_row_to_entry(r) for r in cur.fetchall()]

    def count(self) -> int:
        return int(self.conn.execute("SELECT COUNT(*) FROM api_logs").fetchone()[0])

    def error_count(self) -> int:
        return int(self.conn.execute("SELECT COUNT(*) FROM api_logs WHERE error_message IS NOT NULL").fetchone()[0])

    def success_count(self) -> int:
        return int(
            self.conn.execute(
                "SELECT COUNT(*) FROM api_logs WHERE error_message IS NULL AND response_status = 200"
            ).fetchone()[0]
        )

    def cleanup_old_logs(self, days_to_keep: int = 30, now: Optional[datetime] = None) -> int:
        """Delete rows created strictly before now - days_to_keep. Returns the number deleted."""
        cutoff = _timestamp((now or datetime.now(timezone.utc)) - timedelta(days=days_to_keep))
        cur = self.conn.cursor()
        cur.execute("DELETE FROM api_logs WHERE created_at < ?", (cutoff,))
        self.conn.commit()
        deleted = int(cur.rowcount)
        logger.info("Purged %d api_logs rows older than %d days", deleted, days_to_keep)
        return deleted

    # --- Normalized names (wrappers) ---
    def purge_older_than(self, days: int = 30, now: Optional[datetime] = None) -> int:
        return self.cleanup_old_logs(days, now=now)

    def filter_by_cui(self, cui: str, limit: int = 50) -> List[ApiLogEntry]:
        return self.for_cui(cui, limit)
