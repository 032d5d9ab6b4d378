"""
Company lookup web service.

POST /lookup validates a CUI and redirects to GET /company/{cui}, which runs the
lookup and returns the normalized record. /api_logs/* browse and purge the audit table.
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, Iterator, Optional

from fastapi import Depends, FastAPI, Form, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from config.settings import Settings, check_configuration, get_settings
from db import schema
from db.connection import get_connection
from db.repos.api_logs_repo import ApiLogsRepo
from models.company_record import CompanyRecord
from services.company_service import CompanyService
from services.lista_firme_client import ListaFirmeClient
from utils.logging_setup import init_logging


logger = logging.getLogger(__name__)

CUI_RE = re.compile(r"[0-9]+")

MSG_CUI_REQUIRED = "CUI-ul este obligatoriu"
MSG_CUI_DIGITS = "CUI-ul trebuie să conțină doar cifre"
MSG_NOT_FOUND = "Nu s-au găsit informații pentru CUI-ul {cui}"
MSG_GENERIC = "A apărut o eroare la căutarea companiei. Vă rugăm să încercați din nou."


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_logging(settings.log_level)
    check_configuration(settings)
    conn = get_connection(settings.db_path)
    try:
        schema.bootstrap(conn)
    finally:
        conn.close()
    logger.info("Starting company lookup service (db=%s)", settings.db_path)
    yield
    logger.info("Shutting down company lookup service")


app = FastAPI(
    title="Company Lookup Service",
    description="Romanian company registry lookups by CUI via the Lista Firme API",
    version="1.0.0",
    lifespan=lifespan,
)


# === API models ===

class CompanyResponse(BaseModel):
    cui: str
    company: Optional[CompanyRecord] = None
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    error: str


# === Dependencies ===

def get_repo(settings: Settings = Depends(get_settings)) -> Iterator[ApiLogsRepo]:
    """One SQLite connection per request."""
    conn = get_connection(settings.db_path, check_same_thread=False)
    try:
        schema.bootstrap(conn)
        yield ApiLogsRepo(conn)
    finally:
        conn.close()


def get_company_service(
    settings: Settings = Depends(get_settings),
    repo: ApiLogsRepo = Depends(get_repo),
) -> Iterator[CompanyService]:
    client = ListaFirmeClient(settings=settings, audit_sink=repo)
    try:
        yield CompanyService(client, settings=settings)
    finally:
        client.close()


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


# === Endpoints ===

@app.get("/")
def root(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    return {
        "service": "company-lookup",
        "version": "1.0.0",
        "configured": settings.configured,
        "mock_mode": settings.mock_mode,
    }


@app.post("/lookup", responses={400: {"model": ErrorResponse}})
def lookup(cui: str = Form("")):
    cui = (cui or "").strip()
    if not cui:
        return JSONResponse(status_code=400, content={"error": MSG_CUI_REQUIRED})
    if not CUI_RE.fullmatch(cui):
        return JSONResponse(status_code=400, content={"error": MSG_CUI_DIGITS})
    return RedirectResponse(url=f"/company/{cui}", status_code=303)


@app.get("/company/{cui}", response_model=CompanyResponse)
def show_company(
    cui: str,
    request: Request,
    service: CompanyService = Depends(get_company_service),
) -> CompanyResponse:
    try:
        company = service.fetch_company_info(cui, user_ip=_client_ip(request))
    except Exception as e:
        logger.error("Error fetching company data for CUI %s: %s", cui, e, extra={"cui": cui})
        return CompanyResponse(cui=cui, error=MSG_GENERIC)
    if company is None:
        return CompanyResponse(cui=cui, error=MSG_NOT_FOUND.format(cui=cui))
    return CompanyResponse(cui=cui, company=company)


@app.get("/api_logs")
def api_logs_index(repo: ApiLogsRepo = Depends(get_repo)) -> dict[str, Any]:
    return {
        "api_logs": [e.to_view() for e in repo.recent(100)],
        "total_requests": repo.count(),
        "error_count": repo.error_count(),
        "success_count": repo.success_count(),
        "recent_errors": [e.to_view() for e in repo.errors(10)],
    }


@app.get("/api_logs/search", responses={400: {"model": ErrorResponse}})
def api_logs_search(cui: str = Query(""), repo: ApiLogsRepo = Depends(get_repo)):
    cui = (cui or "").strip()
    if not cui:
        return JSONResponse(status_code=400, content={"error": "Please provide a CUI to search"})
    return {"cui": cui, "api_logs": [e.to_view() for e in repo.for_cui(cui, 50)]}


@app.post("/api_logs/clear_old")
def api_logs_clear_old(
    settings: Settings = Depends(get_settings),
    repo: ApiLogsRepo = Depends(get_repo),
) -> dict[str, Any]:
    deleted = repo.cleanup_old_logs(settings.log_retention_days)
    return {"deleted": deleted, "notice": f"Deleted {deleted} old log entries"}


@app.get("/api_logs/{log_id}")
def api_logs_show(log_id: int, repo: ApiLogsRepo = Depends(get_repo)) -> dict[str, Any]:
    entry = repo.get(log_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="API log not found")
    return entry.to_view()
