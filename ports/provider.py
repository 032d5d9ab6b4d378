from __future__ import annotations

from typing import Any, Dict, Optional, Protocol


class CompanyProviderPort(Protocol):
    def fetch(self, cui: str, user_ip: Optional[str] = None) -> Optional[Dict[str, Any]]:
        ...
