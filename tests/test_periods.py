from datetime import date

import pytest

from periods import Period, month_period, resolve_month, today_in


def test_resolve_month_parses_year_month() -> None:
    assert resolve_month("2024-02") == Period(
        "2024-02", date(2024, 2, 1), date(2024, 2, 29)
    )


def test_resolve_month_defaults_to_month_of_today() -> None:
    period = resolve_month(None, today=date(2023, 12, 31))

    assert period.slug == "2023-12"
    assert period.start == date(2023, 12, 1)
    assert period.end == date(2023, 12, 31)


@pytest.mark.parametrize(
    "value", ["2024-13", "2024-00", "2024-3", "March", "2024-03-01"]
)
def test_resolve_month_rejects_malformed_input(value: str) -> None:
    with pytest.raises(ValueError, match="YYYY-MM"):
        resolve_month(value)


def test_month_period_handles_year_end() -> None:
    assert month_period(9999, 12).end == date(9999, 12, 31)


def test_today_in_returns_a_date() -> None:
    assert isinstance(today_in("UTC"), date)
