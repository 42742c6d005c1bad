"""SOQL literal rendering and Salesforce timestamp parsing."""

from __future__ import annotations

import re
from datetime import UTC, date, datetime

_BASIC_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")
_ESCAPES = str.maketrans({"\\": "\\\\", "'": "\\'", "\n": "\\n", "\r": "\\r", "\t": "\\t"})


def format_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        raise ValueError("SOQL datetimes must include timezone information")
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def literal(value: object) -> str:
    """Render ``value`` as a SOQL literal."""

    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        return str(value)
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    return f"'{str(value).translate(_ESCAPES)}'"


def parse_datetime(value: object) -> datetime | None:
    """Parse a Salesforce timestamp such as ``2024-01-05T10:00:00.000+0000``."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = f"{text[:-1]}+00:00"
        parsed = datetime.fromisoformat(_BASIC_OFFSET.sub(r"\1:\2", text))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
