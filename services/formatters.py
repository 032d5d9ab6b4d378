from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Optional


# Provider dates look like "2002/8/26"; the other two shapes show up in older records
_DATE_FORMATS = ("%Y/%m/%d", "%Y-%m-%d", "%d.%m.%Y")

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (dict, list, tuple)):
        return len(value) == 0
    return False


def format_date(date_string: Any) -> Optional[str]:
    """Render a provider date as DD.MM.YYYY; unparsable input is returned unchanged."""
    if _is_blank(date_string):
        return None
    text = str(date_string).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).strftime("%d.%m.%Y")
        except ValueError:
            continue
    return str(date_string)


def format_nace_code(nace: Any) -> Optional[str]:
    """NACE comes back either as a bare code or as {"code": ..., "description": ...}."""
    if _is_blank(nace):
        return None
    if isinstance(nace, dict):
        code = nace.get("code")
        description = nace.get("description")
        if _is_blank(description):
            return None if _is_blank(code) else str(code)
        return f"{code} - {description}"
    return str(nace)


def _to_int(amount: Any) -> int:
    if isinstance(amount, bool):
        raise ValueError("boolean is not an amount")
    if isinstance(amount, int):
        return amount
    if isinstance(amount, float):
        return int(amount)
    m = _LEADING_INT_RE.match(str(amount))
    if not m:
        raise ValueError(f"not a number: {amount!r}")
    return int(m.group(1))


def group_thousands(value: int, separator: str = ".") -> str:
    digits = str(abs(value))
    chunks = []
    while len(digits) > 3:
        chunks.insert(0, digits[-3:])
        digits = digits[:-3]
    chunks.insert(0, digits)
    sign = "-" if value < 0 else ""
    return sign + separator.join(chunks)


def format_currency(amount: Any) -> Optional[str]:
    """Format an amount as "3.708.712 RON"; falls back to str(amount) when it is not numeric."""
    if _is_blank(amount):
        return None
    try:
        return f"{group_thousands(_to_int(amount))} RON"
    except (TypeError, ValueError, OverflowError):
        return str(amount)
