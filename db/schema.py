from __future__ import annotations

import sqlite3


def bootstrap(conn: sqlite3.Connection) -> None:
    """Create the audit schema and indexes (idempotent)."""
    cur = conn.cursor()

    # One row per outbound Lista Firme request
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS api_logs (\n"
            "  id INTEGER PRIMARY KEY AUTOINCREMENT,\n"
            "  cui TEXT NOT NULL,\n"
            "  request_url TEXT NOT NULL,\n"
            "  http_method TEXT NOT NULL,\n"
            "  request_headers TEXT,\n"
            "  request_body TEXT,\n"
            "  response_status INTEGER NOT NULL,\n"
            "  response_headers TEXT,\n"
            "  response_body TEXT,\n"
            "  request_duration REAL,\n"
            "  error_message TEXT,\n"
            "  user_ip TEXT,\n"
            "  created_at TEXT NOT NULL,\n"
            "  updated_at TEXT NOT NULL\n"
            ")"
        )
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_api_logs_cui ON api_logs(cui);")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_api_logs_created_at ON api_logs(created_at);")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_api_logs_response_status ON api_logs(response_status);")

    conn.commit()
