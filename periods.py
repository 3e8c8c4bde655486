import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from zoneinfo import ZoneInfo

_MONTH_RE = re.compile(r"(\d{4})-(\d{2})")


@dataclass(frozen=True)
class Period:
    slug: str
    start: date
    end: date


def today_in(timezone: str) -> date:
    return datetime.now(ZoneInfo(timezone)).date()


def month_period(year: int, month: int) -> Period:
    last_day = calendar.monthrange(year, month)[1]
    return Period(
        f"{year:04d}-{month:02d}", date(year, month, 1), date(year, month, last_day)
    )


def resolve_month(year_month: Optional[str], *, today: Optional[date] = None) -> Period:
    if not year_month:
        today = today or date.today()
        return month_period(today.year, today.month)

    match = _MONTH_RE.fullmatch(year_month.strip())
    if not match:
        raise ValueError("Month must be in YYYY-MM format")
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        raise ValueError("Month must be in YYYY-MM format")
    return month_period(year, month)
