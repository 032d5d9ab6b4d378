from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class CompanyRecord(BaseModel):
    """Canonical company shape returned to callers; never persisted."""

    cui: str
    company_name: str | None = None
    status: str | None = None
    fiscal_activity: str | None = None
    legal_form: str | None = None
    registration_date: str | None = None
    employees: str | None = None
    nace_code: str | None = None
    address: str | None = None
    city: str | None = None
    county: str | None = None
    turnover: str | None = None
    profit: str | None = None
    cost: str | None = None
    views_remaining: str | None = None

    model_config = ConfigDict(extra="ignore", frozen=True)
