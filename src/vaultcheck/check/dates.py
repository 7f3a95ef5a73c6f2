"""Recognize periodic-note targets that point at periods which have not started yet."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Literal, Optional

Granularity = Literal["day", "month", "year"]

_DAY_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})(?:_week)?(?:\.md)?$", re.IGNORECASE)
_MONTH_RE = re.compile(r"(\d{4})-(\d{2})_month(?:\.md)?$", re.IGNORECASE)
_YEAR_RE = re.compile(r"(?:^|/)(\d{4})(?:\.md)?$", re.IGNORECASE)


@dataclass(frozen=True)
class PeriodicDate:
    start: date
    granularity: Granularity


def _safe_date(year: str, month: str, day: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_periodic_date(target: str) -> Optional[PeriodicDate]:
    """Return the first day of the period named by a periodic-note target.

    ``journal/2024-05-01.md`` and ``2024-05-06_week.md`` are days,
    ``2024-05_month.md`` is a month and ``2024.md`` a year. Names that do not
    follow the convention, or carry an impossible date, return None.
    """
    m = _DAY_RE.search(target)
    if m:
        start = _safe_date(m.group(1), m.group(2), m.group(3))
        return PeriodicDate(start, "day") if start else None
    m = _MONTH_RE.search(target)
    if m:
        start = _safe_date(m.group(1), m.group(2), "01")
        return PeriodicDate(start, "month") if start else None
    m = _YEAR_RE.search(target)
    if m:
        start = _safe_date(m.group(1), "01", "01")
        return PeriodicDate(start, "year") if start else None
    return None


def is_future_periodic(target: str, today: date) -> bool:
    """True when a link to ``target`` is a forward-looking periodic note link.

    Day and week notes are suppressed from today onwards; month and year notes
    only once their first day is strictly after today.
    """
    parsed = parse_periodic_date(target)
    if parsed is None:
        return False
    if parsed.granularity == "day":
        return parsed.start >= today
    return parsed.start > today
