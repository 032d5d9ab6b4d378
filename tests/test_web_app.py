from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from config.settings import get_settings
from db import schema
from db.repos.api_logs_repo import ApiLogsRepo
from services.company_service import CompanyService
from services.lista_firme_client import ListaFirmeClient
from web.app import app, get_company_service, get_repo


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _seed(db_path: str, rows):
    conn = sqlite3.connect(db_path)
    try:
        schema.bootstrap(conn)
        repo = ApiLogsRepo(conn)
        ids = []
        for cui, status, error, created_at in rows:
            ids.append(repo.log_api_request(
                cui=cui, request_url="https://www.listafirme.ro/api/info-v2.asp", http_method="POST",
                request_headers={}, request_body="{}", response_status=status, response_headers={},
                response_body="{}", request_duration=0.5, error_message=error, created_at=created_at,
            ))
        return ids
    finally:
        conn.close()


def test_root(client):
    body = client.get("/").json()
    assert body["configured"] is False
    assert body["mock_mode"] is True


def test_lookup_requires_cui(client):
    r = client.post("/lookup", data={"cui": "  "})
    assert r.status_code == 400
    assert r.json()["error"] == "CUI-ul este obligatoriu"


def test_lookup_rejects_non_digits(client):
    r = client.post("/lookup", data={"cui": "abc123"})
    assert r.status_code == 400
    assert r.json()["error"] == "CUI-ul trebuie să conțină doar cifre"


def test_lookup_redirects_to_show(client):
    r = client.post("/lookup", data={"cui": " 14837428 "}, follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/company/14837428"


def test_show_serves_mock_record(client, settings):
    r = client.get("/company/14837428")
    assert r.status_code == 200
    body = r.json()
    assert body["error"] is None
    assert body["company"]["company_name"] == "BORG DESIGN SRL"
    # Mock mode never touches the network or the audit table
    conn = sqlite3.connect(settings.db_path)
    try:
        assert conn.execute("SELECT COUNT(*) FROM api_logs").fetchone()[0] == 0
    finally:
        conn.close()


def test_show_unknown_cui_without_key(client):
    body = client.get("/company/99999999").json()
    assert body["company"] is None
    assert body["error"] == "Nu s-au găsit informații pentru CUI-ul 99999999"


def test_show_live_lookup_audits_request(make_settings, fake_session, sample_payload):
    settings = make_settings(lista_firme_api_key="abcdef1234567890xyz")
    session = fake_session(200, json.dumps(sample_payload))

    def _service(repo: ApiLogsRepo = Depends(get_repo)):
        yield CompanyService(ListaFirmeClient(settings=settings, audit_sink=repo, session=session), settings=settings)

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_company_service] = _service
    try:
        body = TestClient(app).get("/company/14837428").json()
    finally:
        app.dependency_overrides.clear()

    assert body["company"]["turnover"] == "3.708.712 RON"
    conn = sqlite3.connect(settings.db_path)
    try:
        rows = conn.execute("SELECT cui, response_status, user_ip, request_body FROM api_logs").fetchall()
    finally:
        conn.close()
    assert len(rows) == 1
    cui, status, user_ip, request_body = rows[0]
    assert (cui, status, user_ip) == ("14837428", 200, "testclient")
    assert "abcdef1234567890xyz" not in request_body


def test_api_logs_index_and_show(client, settings):
    ids = _seed(settings.db_path, [
        ("111", 200, None, None),
        ("222", 500, "HTTP 500: boom", None),
    ])
    body = client.get("/api_logs").json()
    assert body["total_requests"] == 2
    assert body["error_count"] == 1
    assert body["success_count"] == 1
    assert [e["cui"] for e in body["recent_errors"]] == ["222"]

    shown = client.get(f"/api_logs/{ids[0]}").json()
    assert shown["cui"] == "111"
    assert shown["success"] is True
    assert shown["duration_ms"] == 500.0
    assert client.get("/api_logs/9999").status_code == 404


def test_api_logs_search(client, settings):
    _seed(settings.db_path, [("111", 200, None, None), ("222", 200, None, None)])
    assert client.get("/api_logs/search", params={"cui": ""}).status_code == 400
    body = client.get("/api_logs/search", params={"cui": "222"}).json()
    assert [e["cui"] for e in body["api_logs"]] == ["222"]


def test_api_logs_clear_old(client, settings):
    old = datetime.now(timezone.utc) - timedelta(days=45)
    _seed(settings.db_path, [("111", 200, None, old), ("222", 200, None, None)])
    body = client.post("/api_logs/clear_old").json()
    assert body["deleted"] == 1
    assert body["notice"] == "Deleted 1 old log entries"
