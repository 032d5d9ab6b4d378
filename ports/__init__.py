from .audit import AuditSinkPort, ApiLogsRepoPort
from .provider import CompanyProviderPort

__all__ = [
    "AuditSinkPort",
    "ApiLogsRepoPort",
    "CompanyProviderPort",
]
