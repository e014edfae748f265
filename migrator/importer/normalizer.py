"""Normalizes documents from a JSON export before they are inserted."""

import re
from datetime import datetime
from typing import Any

from migrator.clock import Clock, utc_now

# Full RFC3339 date-time: a time zone designator is mandatory.
_RFC3339 = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)

SURROGATE_KEY = "id"
AUDIT_FIELDS = ("createdAt", "updatedAt")


def parse_rfc3339(value: str) -> datetime | None:
    """Return an aware datetime, or None if `value` is not RFC3339."""
    if not _RFC3339.match(value):
        return None
    text = value.upper()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    date_part, _, time_part = text.partition("T")
    time_main, sep, frac_and_tz = time_part.partition(".")
    if sep:
        # fromisoformat accepts at most 6 fractional digits.
        digits = re.match(r"\d+", frac_and_tz).group()
        tz = frac_and_tz[len(digits):]
        time_part = f"{time_main}.{digits[:6].ljust(6, '0')}{tz}"
    try:
        return datetime.fromisoformat(f"{date_part}T{time_part}")
    except ValueError:
        return None


class DocumentNormalizer:
    """Turns exported JSON objects into store-ready documents.

    RFC3339 strings become aware datetimes, nested objects and objects
    inside lists are normalized recursively, the top-level `id` is dropped,
    and missing `createdAt`/`updatedAt` are filled from the clock.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def normalize(self, doc: dict[str, Any]) -> dict[str, Any]:
        return self._normalize_map(doc, top_level=True)

    def _normalize_map(self, doc: dict[str, Any], top_level: bool = False) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key, value in doc.items():
            if top_level and key == SURROGATE_KEY:
                continue
            out[key] = self._normalize_value(value)

        now = None
        for field in AUDIT_FIELDS:
            if field not in out:
                now = now or self._clock()
                out[field] = now
        return out

    def _normalize_value(self, value: Any) -> Any:
        if isinstance(value, str):
            parsed = parse_rfc3339(value)
            return parsed if parsed is not None else value
        if isinstance(value, dict):
            return self._normalize_map(value)
        if isinstance(value, list):
            return [self._normalize_map(item) if isinstance(item, dict) else item for item in value]
        return value

