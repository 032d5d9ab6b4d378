from __future__ import annotations

from typing import List, Optional, Protocol

from models.api_log_entry import ApiLogEntry


class AuditSinkPort(Protocol):
    def record(self, entry: ApiLogEntry) -> Optional[int]:
        ...


class ApiLogsRepoPort(AuditSinkPort, Protocol):
    def recent(self, limit: int = 100) -> List[ApiLogEntry]:
        ...

    def for_cui(self, cui: str, limit: int = 50) -> List[ApiLogEntry]:
        ...

    def cleanup_old_logs(self, days_to_keep: int = 30) -> int:
        ...
