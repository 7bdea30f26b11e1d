from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

_WEEKDAY_RE = re.compile(r"^(?:mon|tues|wednes|thurs|fri|satur|sun)day\s*,?\s*", re.IGNORECASE)
_ORDINAL_RE = re.compile(r"(\d+)(?:st|nd|rd|th)\b", re.IGNORECASE)
_AT_RE = re.compile(r"\s+(?:at|@)\s+|\s*@\s*", re.IGNORECASE)
_WS_RE = re.compile(r"\s+")

_FORMATS = (
    "%B %d, %Y %I:%M %p",
    "%B %d, %Y %I:%M:%S %p",
    "%B %d, %Y %H:%M",
    "%B %d, %Y",
    "%b %d, %Y %I:%M %p",
    "%b %d, %Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
)


def parse_stamp(text: Optional[str]) -> Optional[int]:
    """Epoch seconds for free-text stamps like "Monday, February 5th, 2024 at 8:49 PM".

    Times are read as UTC so the same document always exports the same dates.
    """
    if not text:
        return None
    s = _WEEKDAY_RE.sub("", text.strip())
    s = _ORDINAL_RE.sub(r"\1", s)
    s = _AT_RE.sub(" ", s)
    s = _WS_RE.sub(" ", s).strip()
    for fmt in _FORMATS:
        try:
            dt = datetime.strptime(s, fmt)
        except ValueError:
            continue
        return int(dt.replace(tzinfo=timezone.utc).timestamp())
    return None
