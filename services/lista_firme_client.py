from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Tuple

import requests

from config.settings import Settings, get_settings
from models.api_log_entry import ApiLogEntry
from ports.audit import AuditSinkPort
from services.errors import (
    ParseError,
    ProviderConnectionError,
    ProviderError,
    ProviderFailure,
    ProviderHTTPError,
    ProviderTimeoutError,
    UnexpectedProviderError,
)
from utils.call_logger import log_call


# Field names requested from info-v2.asp; the provider fills the ones sent empty
REQUESTED_FIELDS = (
    "TaxCode",
    "Name",
    "Status",
    "FiscalActivity",
    "LegalForm",
    "Date",
    "Employees",
    "NACE",
    "Address",
    "City",
    "County",
    "Turnover",
    "Profit",
)

ERROR_BODY_LIMIT = 200


def redact_key(api_key: Optional[str]) -> str:
    """Keep the first 6 and last 3 characters of a key."""
    if not api_key:
        return ""
    if len(api_key) <= 9:
        return "***"
    return f"{api_key[:6]}...{api_key[-3:]}"


def build_request_data(cui: str) -> Dict[str, str]:
    data = {field: "" for field in REQUESTED_FIELDS}
    data["TaxCode"] = cui
    # "info" asks for the NACE code together with its description
    data["NACE"] = "info"
    return data


def extract_error_message(body: Optional[str]) -> str:
    """Best-effort message out of a non-2xx body: JSON error/message, else the raw text truncated."""
    if not body:
        return "empty response body"
    try:
        parsed = json.loads(body)
        if isinstance(parsed, dict):
            for key in ("error", "message"):
                if parsed.get(key):
                    return str(parsed[key])
    except ValueError:
        pass
    return body[:ERROR_BODY_LIMIT]


class ListaFirmeClient:
    """POSTs one info-v2.asp request per lookup and audits every attempt.

    fetch() never raises: each outcome is classified, written to the audit sink
    exactly once, and failures come back as None.
    """

    HTTP_METHOD = "POST"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        audit_sink: Optional[AuditSinkPort] = None,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.audit_sink = audit_sink
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def request_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.settings.user_agent,
            "Content-Type": "application/x-www-form-urlencoded",
        }

    def close(self) -> None:
        self.session.close()

    def fetch(self, cui: str, user_ip: Optional[str] = None) -> Optional[Dict[str, Any]]:
        api_key = self.settings.lista_firme_api_key or ""
        url = self.settings.info_url
        data = build_request_data(cui)
        form = {"key": api_key, "data": json.dumps(data, ensure_ascii=False)}
        logged_body = json.dumps({"key": redact_key(api_key), "data": data}, ensure_ascii=False)

        try:
            payload, status, headers, body, duration = self._perform(url, form)
        except ProviderFailure as failure:
            self._audit(cui, url, logged_body, failure.response_status, failure.response_headers,
                        failure.response_body, failure.duration, failure.message, user_ip)
            self._log_failure(cui, failure)
            return None
        except Exception as e:
            failure = UnexpectedProviderError(f"Unexpected error ({type(e).__name__}): {e}")
            self._audit(cui, url, logged_body, 0, {}, "", 0.0, failure.message, user_ip)
            self._log_failure(cui, failure)
            return None

        self._audit(cui, url, logged_body, status, headers, body, duration, None, user_ip)
        self.logger.info(
            "Lista Firme lookup succeeded",
            extra={"cui": cui, "status": status, "duration_ms": int(duration * 1000), "provider": "lista_firme"},
        )
        log_call(self.settings, caller="lista_firme_client.fetch", cui=cui, operation="info-v2",
                 response_status=status, duration_ms=int(duration * 1000))
        return payload

    def _perform(self, url: str, form: Dict[str, str]) -> Tuple[Dict[str, Any], int, Dict[str, Any], str, float]:
        read_timeout = self.settings.api_timeout_seconds
        open_timeout = self.settings.api_open_timeout_seconds
        t0 = time.time()
        try:
            response = self.session.post(
                url,
                data=form,
                headers=self.request_headers,
                timeout=(open_timeout, read_timeout),
            )
        except requests.Timeout as e:
            # ConnectTimeout is also a ConnectionError; it must be classified as a timeout first
            fired = open_timeout if isinstance(e, requests.ConnectTimeout) else read_timeout
            raise ProviderTimeoutError(f"Request timed out after {fired}s: {e}", duration=fired) from e
        except requests.ConnectionError as e:
            raise ProviderConnectionError(f"Network error connecting to Lista Firme API: {e}") from e
        except Exception as e:
            raise UnexpectedProviderError(f"Unexpected error ({type(e).__name__}): {e}") from e
        duration = time.time() - t0

        status = int(response.status_code)
        body = response.text or ""
        headers = dict(response.headers or {})
        audit = {"response_status": status, "response_body": body, "response_headers": headers, "duration": duration}

        if not 200 <= status < 300:
            raise ProviderHTTPError(f"HTTP {status}: {extract_error_message(body)}", **audit)
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise ParseError(f"Failed to parse Lista Firme API response: {e}", **audit) from e
        if not isinstance(payload, dict):
            raise ParseError(f"Unexpected JSON payload type: {type(payload).__name__}", **audit)
        if payload.get("error") is not None:
            raise ProviderError(str(payload["error"]), **audit)
        return payload, status, headers, body, duration

    def _audit(
        self,
        cui: str,
        url: str,
        request_body: str,
        status: int,
        response_headers: Dict[str, Any],
        response_body: str,
        duration: float,
        error_message: Optional[str],
        user_ip: Optional[str],
    ) -> None:
        if self.audit_sink is None:
            return
        entry = ApiLogEntry(
            cui=cui,
            request_url=url,
            http_method=self.HTTP_METHOD,
            request_headers=json.dumps(self.request_headers),
            request_body=request_body,
            response_status=status,
            response_headers=json.dumps(response_headers, ensure_ascii=False),
            response_body=response_body,
            request_duration=round(duration, 4),
            error_message=error_message,
            user_ip=user_ip,
        )
        try:
            self.audit_sink.record(entry)
        except Exception as e:
            # Audit writes are best effort; see DESIGN.md
            self.logger.error("Failed to log API request: %s", e, extra={"cui": cui})

    def _log_failure(self, cui: str, failure: ProviderFailure) -> None:
        self.logger.error(
            "Lista Firme lookup failed: %s",
            failure.message,
            extra={
                "cui": cui,
                "status": failure.response_status,
                "duration_ms": int(failure.duration * 1000),
                "provider": "lista_firme",
                "error": type(failure).__name__,
            },
        )
        log_call(self.settings, caller="lista_firme_client.fetch", cui=cui, operation="info-v2",
                 status="error", response_status=failure.response_status,
                 duration_ms=int(failure.duration * 1000), error=type(failure).__name__)
