from .company_record import CompanyRecord
from .api_log_entry import ApiLogEntry

__all__ = [
    "CompanyRecord",
    "ApiLogEntry",
]
