from __future__ import annotations

import logging
import traceback
from typing import Optional

from config.settings import Settings, get_settings
from models.company_record import CompanyRecord
from ports.provider import CompanyProviderPort
from services.errors import ConfigurationError
from services.normalizer import normalize


# Demo record for the test CUI, shaped after the provider documentation example
MOCK_COMPANY = CompanyRecord(
    cui="14837428",
    company_name="BORG DESIGN SRL",
    status="functiune",
    fiscal_activity="ACTIVA",
    legal_form="SRL",
    registration_date="26.08.2002",
    employees="23",
    nace_code="6201 - Activități de realizare a soft-ului la comandă",
    address="STR. ING. STEFAN HEPITES, Nr. 16A, Et. P",
    city="SECTORUL 5",
    county="BUCURESTI",
    turnover="3.708.712 RON",
    profit="351.060 RON",
    cost="5",
    views_remaining="86",
)

TRACEBACK_LIMIT = 5


class CompanyService:
    """Entry point for company lookups: mock mode, provider call, normalization."""

    def __init__(
        self,
        provider: CompanyProviderPort,
        settings: Optional[Settings] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.provider = provider
        self.settings = settings or get_settings()
        self.logger = logger or logging.getLogger(__name__)

    def serves_mock(self, cui: str) -> bool:
        return self.settings.mock_mode and not self.settings.configured and cui == self.settings.test_cui

    def fetch_company_info(self, cui: str, user_ip: Optional[str] = None) -> Optional[CompanyRecord]:
        """Return the company for a CUI, or None. Never raises."""
        try:
            return self._lookup(cui, user_ip)
        except ConfigurationError as e:
            self.logger.error("%s", e, extra={"cui": cui, "error": "ConfigurationError"})
            return None
        except Exception as e:
            trace = "".join(traceback.format_exception(type(e), e, e.__traceback__, limit=TRACEBACK_LIMIT))
            self.logger.error("Error fetching company data for CUI %s: %s\n%s", cui, e, trace,
                              extra={"cui": cui, "error": type(e).__name__})
            return None

    lookup = fetch_company_info

    def _lookup(self, cui: str, user_ip: Optional[str]) -> Optional[CompanyRecord]:
        if self.serves_mock(cui):
            self.logger.info("Using mock data for CUI %s (API key not configured)", cui, extra={"cui": cui})
            return MOCK_COMPANY.model_copy(update={"cui": cui})

        if not self.settings.configured:
            raise ConfigurationError("Lista Firme API key not configured. Set LISTA_FIRME_API_KEY to enable lookups.")

        raw = self.provider.fetch(cui, user_ip=user_ip)
        if raw is None:
            return None
        return normalize(raw)
