from __future__ import annotations

import os
import sqlite3
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'services.normalizer'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs
    os.environ.setdefault("RUN_ENV", "test")


API_KEY = "abcdef1234567890xyz"


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch):
    """Fresh settings per test; never pick up a developer's real key."""
    from config.settings import get_settings

    for name in ("LISTA_FIRME_API_KEY", "LISTA_FIRME_MOCK_MODE", "LISTA_FIRME_TRACE", "DB_PATH"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RUN_ENV", "test")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings(tmp_path):
    from config.settings import Settings

    base = Settings(
        lista_firme_api_key=None,
        lista_firme_base_url="https://www.listafirme.ro/api",
        api_timeout_seconds=30.0,
        api_open_timeout_seconds=10.0,
        test_cui="14837428",
        mock_mode=True,
        db_path=str(tmp_path / "lookups.db"),
        run_env="test",
        log_level="INFO",
        log_retention_days=30,
    )

    def _make(**overrides: Any) -> Settings:
        return replace(base, **overrides)

    return _make


@pytest.fixture
def repo():
    from db import schema
    from db.repos.api_logs_repo import ApiLogsRepo

    conn = sqlite3.connect(":memory:")
    schema.bootstrap(conn)
    try:
        yield ApiLogsRepo(conn)
    finally:
        conn.close()


class FakeResponse:
    def __init__(self, status_code: int = 200, text: str = "", headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.text = text
        self.headers = headers if headers is not None else {"Content-Type": "application/json"}


class FakeSession:
    """Stands in for requests.Session: returns a canned response or raises."""

    def __init__(self, response: Optional[FakeResponse] = None, exc: Optional[BaseException] = None):
        self.response = response
        self.exc = exc
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def post(self, url, data=None, headers=None, timeout=None):
        self.calls.append({"url": url, "data": data, "headers": headers, "timeout": timeout})
        if self.exc is not None:
            raise self.exc
        return self.response

    def close(self):
        self.closed = True


@pytest.fixture
def fake_session():
    def _make(status_code: int = 200, text: str = "", headers=None, exc=None) -> FakeSession:
        if exc is not None:
            return FakeSession(exc=exc)
        return FakeSession(FakeResponse(status_code, text, headers))

    return _make


SAMPLE_PAYLOAD: Dict[str, Any] = {
    "TaxCode": "14837428",
    "Name": "BORG DESIGN SRL",
    "Status": "functiune",
    "FiscalActivity": "ACTIVA",
    "LegalForm": "SRL",
    "Date": "2002/8/26",
    "Employees": "20",
    "NACE": {"code": "6201", "description": "Activități de realizare a soft-ului la comandă"},
    "Address": "STR. ING. STEFAN HEPITES, Nr. 16A, Et. P",
    "City": "SECTORUL 5",
    "County": "BUCURESTI",
    "Turnover": "1000",
    "Profit": "10",
    "Balance": [
        {"Year": "2023", "Employees": "23", "Turnover": "3708712", "NetProfit": "351060"},
        {"Year": "2022", "Employees": "21", "Turnover": "3000000", "NetProfit": "200000"},
    ],
    "cost": "5",
    "views": "86",
}


@pytest.fixture
def sample_payload() -> Dict[str, Any]:
    import copy

    return copy.deepcopy(SAMPLE_PAYLOAD)
