from __future__ import annotations

from typing import Any, Dict, Optional


class ListaFirmeError(Exception):
    """Base class for lookup failures. Never surfaced past the web layer."""


class ConfigurationError(ListaFirmeError):
    """No API key configured and the CUI is not served by mock mode."""


class ProviderFailure(ListaFirmeError):
    """A failed outbound attempt; carries what the audit row needs."""

    def __init__(
        self,
        message: str,
        *,
        response_status: int = 0,
        response_body: str = "",
        response_headers: Optional[Dict[str, Any]] = None,
        duration: float = 0.0,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.response_status = response_status
        self.response_body = response_body
        self.response_headers = response_headers or {}
        self.duration = duration


class ProviderError(ProviderFailure):
    """Provider answered 2xx with an `error` field."""


class ParseError(ProviderFailure):
    """Provider answered 2xx with a body that is not a JSON object."""


class ProviderHTTPError(ProviderFailure):
    """Provider answered with a non-2xx status."""


class ProviderTimeoutError(ProviderFailure):
    pass


class ProviderConnectionError(ProviderFailure):
    pass


class UnexpectedProviderError(ProviderFailure):
    pass
