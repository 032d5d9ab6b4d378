from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from models.company_record import CompanyRecord
from services.formatters import format_currency, format_date, format_nace_code


logger = logging.getLogger(__name__)


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


def _latest_balance(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """First element of Balance is the most recent financial year."""
    balance = data.get("Balance")
    if isinstance(balance, list) and balance and isinstance(balance[0], dict):
        return balance[0]
    return None


def _from_balance(data: Dict[str, Any], balance_key: str, top_level_key: str) -> Any:
    latest = _latest_balance(data)
    if latest is not None and latest.get(balance_key) not in (None, ""):
        return latest[balance_key]
    return data.get(top_level_key)


def extract_employees(data: Dict[str, Any]) -> Optional[str]:
    return _as_text(_from_balance(data, "Employees", "Employees"))


def extract_turnover(data: Dict[str, Any]) -> Optional[str]:
    return format_currency(_from_balance(data, "Turnover", "Turnover"))


def extract_profit(data: Dict[str, Any]) -> Optional[str]:
    return format_currency(_from_balance(data, "NetProfit", "Profit"))


def normalize(raw: Optional[Dict[str, Any]]) -> Optional[CompanyRecord]:
    """Map a provider payload to a CompanyRecord, or None when the payload is unusable."""
    if not isinstance(raw, dict):
        return None
    if raw.get("error") is not None:
        logger.error("API returned error: %s", raw.get("error"))
        return None
    if raw.get("TaxCode") in (None, ""):
        logger.error("API response has no TaxCode field")
        return None

    return CompanyRecord(
        cui=str(raw["TaxCode"]),
        company_name=_as_text(raw.get("Name")),
        status=_as_text(raw.get("Status")),
        fiscal_activity=_as_text(raw.get("FiscalActivity")),
        legal_form=_as_text(raw.get("LegalForm")),
        registration_date=format_date(raw.get("Date")),
        employees=extract_employees(raw),
        nace_code=format_nace_code(raw.get("NACE")),
        address=_as_text(raw.get("Address")),
        city=_as_text(raw.get("City")),
        county=_as_text(raw.get("County")),
        turnover=extract_turnover(raw),
        profit=extract_profit(raw),
        cost=_as_text(raw.get("cost")),
        views_remaining=_as_text(raw.get("views")),
    )
