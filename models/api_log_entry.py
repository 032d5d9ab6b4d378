from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class ApiLogEntry(BaseModel):
    """One outbound provider attempt, as stored in the api_logs table."""

    id: int | None = None
    cui: str
    request_url: str
    http_method: str
    request_headers: str | None = None
    request_body: str | None = None
    response_status: int
    response_headers: str | None = None
    response_body: str | None = None
    request_duration: float | None = None
    error_message: str | None = None
    user_ip: str | None = None
    created_at: str | None = None

    model_config = ConfigDict(extra="ignore")

    @property
    def success(self) -> bool:
        return self.response_status == 200 and not self.error_message

    @property
    def error(self) -> bool:
        return not self.success

    @property
    def duration_ms(self) -> float | None:
        if self.request_duration is None:
            return None
        return round(self.request_duration * 1000, 2)

    @property
    def formatted_created_at(self) -> str | None:
        if not self.created_at:
            return None
        return datetime.fromisoformat(self.created_at).strftime("%Y-%m-%d %H:%M:%S")

    def to_view(self) -> dict:
        """Serializable shape for the log browsing endpoints."""
        data = self.model_dump()
        data["success"] = self.success
        data["duration_ms"] = self.duration_ms
        data["formatted_created_at"] = self.formatted_created_at
        return data
