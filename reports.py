"""Derived, read-only figures over one user's income and expense records.

Apart from defaulting the target month to today in the configured timezone,
every function here is pure. Records may be ORM rows, response models or
plain mappings; all that is read is ``amount``, ``date`` and, for expenses,
``category``. Amounts are summed as ``Decimal`` so that running balances and
grand totals agree to the cent, and reported back as floats.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional

from config import get_settings
from periods import Period, resolve_month, today_in

_ZERO = Decimal("0")


@dataclass(frozen=True)
class Totals:
    income: float
    expenses: float
    balance: float


@dataclass(frozen=True)
class MonthlyTotals:
    period: Period
    income: float
    expenses: float
    balance: float


@dataclass(frozen=True)
class BalancePoint:
    date: str
    income: float
    expenses: float
    balance: float


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _amount(record: Any) -> Decimal:
    value = _field(record, "amount")
    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _date_key(record: Any) -> str:
    value = _field(record, "date")
    if isinstance(value, date):
        return value.isoformat()
    return str(value or "")


def _sum(records: Iterable[Any]) -> Decimal:
    return sum((_amount(r) for r in records), _ZERO)


def _in_month(records: Iterable[Any], prefix: str) -> list[Any]:
    return [r for r in records if _date_key(r).startswith(prefix)]


def _target_month(year_month: Optional[str], today: Optional[date]) -> Period:
    if not year_month and today is None:
        today = today_in(get_settings().timezone)
    return resolve_month(year_month, today=today)


def totals(income: Iterable[Any], expenses: Iterable[Any]) -> Totals:
    total_income = _sum(income)
    total_expenses = _sum(expenses)
    return Totals(
        income=float(total_income),
        expenses=float(total_expenses),
        balance=float(total_income - total_expenses),
    )


def monthly_totals(
    income: Iterable[Any],
    expenses: Iterable[Any],
    year_month: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> MonthlyTotals:
    period = _target_month(year_month, today)
    month_income = _sum(_in_month(income, period.slug))
    month_expenses = _sum(_in_month(expenses, period.slug))
    return MonthlyTotals(
        period=period,
        income=float(month_income),
        expenses=float(month_expenses),
        balance=float(month_income - month_expenses),
    )


def category_breakdown(
    expenses: Iterable[Any],
    year_month: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> dict[str, float]:
    """Sum expenses per category for one month, in first-seen order."""
    period = _target_month(year_month, today)
    sums: dict[str, Decimal] = {}
    for record in _in_month(expenses, period.slug):
        category = _field(record, "category") or ""
        sums[category] = sums.get(category, _ZERO) + _amount(record)
    return {category: float(amount) for category, amount in sums.items()}


def top_categories(breakdown: Mapping[str, float], n: int) -> list[tuple[str, float]]:
    # sorted() is stable, so equal amounts keep their encounter order
    ranked = sorted(breakdown.items(), key=lambda item: item[1], reverse=True)
    return ranked[: max(n, 0)]


def balance_series(
    income: Iterable[Any], expenses: Iterable[Any]
) -> list[BalancePoint]:
    """Per-day income and expense sums with the running balance.

    One point per distinct date found in either list, ascending. The balance
    at a date includes everything dated on or before it.
    """
    income_by_day: dict[str, Decimal] = {}
    expenses_by_day: dict[str, Decimal] = {}
    for record in income:
        key = _date_key(record)
        income_by_day[key] = income_by_day.get(key, _ZERO) + _amount(record)
    for record in expenses:
        key = _date_key(record)
        expenses_by_day[key] = expenses_by_day.get(key, _ZERO) + _amount(record)

    points: list[BalancePoint] = []
    running = _ZERO
    for day in sorted(set(income_by_day) | set(expenses_by_day)):
        day_income = income_by_day.get(day, _ZERO)
        day_expenses = expenses_by_day.get(day, _ZERO)
        running += day_income - day_expenses
        points.append(
            BalancePoint(
                date=day,
                income=float(day_income),
                expenses=float(day_expenses),
                balance=float(running),
            )
        )
    return points
