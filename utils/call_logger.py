from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from config.settings import Settings


logger = logging.getLogger(__name__)


def _ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def log_call(
    settings: Settings,
    *,
    caller: str,
    cui: str,
    operation: str,
    status: str = "ok",
    response_status: Optional[int] = None,
    duration_ms: Optional[int] = None,
    error: Optional[str] = None,
    extras: Optional[Dict[str, Any]] = None,
) -> None:
    """Append a single JSON line describing a provider call if tracing is enabled.

    Bodies and keys are never written here; the audit table holds the full exchange.
    """
    if not settings.call_trace:
        return

    log_path = Path(settings.call_trace_path)

    payload: Dict[str, Any] = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "caller": caller,
        "provider": "lista_firme",
        "operation": operation,
        "cui": cui,
        "status": status,
        "response_status": response_status,
        "duration_ms": duration_ms,
        "error": error,
    }
    if extras:
        # Shallow merge extras under a dedicated key to avoid collisions
        payload["extras"] = extras

    try:
        _ensure_parent_dir(log_path)
        with log_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False) + "\n")
    except OSError as e:
        # Never break a lookup on trace failures
        logger.warning("Failed to write call trace to %s: %s", log_path, e)
