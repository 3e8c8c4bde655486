from datetime import date
from decimal import Decimal

import pytest

from errors import ValidationFailed
from models import RecordKind
from schemas import ExpenseIn, IncomeIn
from validation import (
    parse_record,
    parse_signup,
    validate_record,
    validate_signup,
)


def test_valid_income_and_expense_payloads_are_accepted() -> None:
    income = {"amount": 1200, "date": "2024-03-01", "description": "Salary"}
    expense = {"amount": 12.5, "date": "2024-02-29", "category": "Food"}

    assert validate_record(income, RecordKind.income).valid
    assert validate_record(expense, RecordKind.expense).valid
    assert validate_record(expense, RecordKind.expense).reason is None


@pytest.mark.parametrize(
    "amount",
    [0, -5, "100", None, True, float("nan"), float("inf")],
)
def test_bad_amount_is_rejected(amount) -> None:
    payload = {"amount": amount, "date": "2024-03-01"}
    result = validate_record(payload, RecordKind.income)

    assert not result.valid
    assert result.reason == "Valid amount is required."


def test_missing_amount_is_rejected() -> None:
    result = validate_record({"date": "2024-03-01"}, RecordKind.income)
    assert result.reason == "Valid amount is required."


@pytest.mark.parametrize(
    "value",
    [
        "2024-02-30",
        "2024-13-01",
        "2024-3-01",
        "03/01/2024",
        "2024-03-01T10:00",
        "",
        20240301,
        None,
    ],
)
def test_bad_date_is_rejected(value) -> None:
    result = validate_record({"amount": 10, "date": value}, RecordKind.income)

    assert not result.valid
    assert result.reason == "Valid date is required."


@pytest.mark.parametrize("category", [None, "", "   ", 7])
def test_expense_requires_category(category) -> None:
    payload = {"amount": 10, "date": "2024-03-01", "category": category}
    result = validate_record(payload, RecordKind.expense)

    assert result.reason == "Category is required."


def test_income_ignores_category() -> None:
    result = validate_record({"amount": 10, "date": "2024-03-01"}, RecordKind.income)
    assert result.valid


def test_description_must_be_a_string() -> None:
    payload = {"amount": 10, "date": "2024-03-01", "description": 42}
    result = validate_record(payload, RecordKind.income)

    assert result.reason == "Description must be a string."


def test_null_description_is_allowed() -> None:
    payload = {"amount": 10, "date": "2024-03-01", "description": None}
    assert validate_record(payload, RecordKind.income).valid


def test_non_object_body_is_rejected() -> None:
    result = validate_record([1, 2, 3], RecordKind.income)
    assert result.reason == "Request body must be a JSON object."


def test_parse_record_builds_typed_expense() -> None:
    data = parse_record(
        {
            "amount": 19.999,
            "date": "2024-01-15",
            "category": "  Food ",
            "description": "",
        },
        RecordKind.expense,
    )

    assert isinstance(data, ExpenseIn)
    assert data.amount == Decimal("20.00")
    assert data.date == date(2024, 1, 15)
    assert data.category == "Food"
    assert data.description is None


def test_parse_record_builds_typed_income() -> None:
    data = parse_record(
        {"amount": 100, "date": "2024-03-01", "category": "ignored"},
        RecordKind.income,
    )

    assert type(data) is IncomeIn
    assert data.amount == Decimal("100.00")


def test_parse_record_rejects_amount_that_rounds_to_zero() -> None:
    with pytest.raises(ValidationFailed, match="Valid amount is required."):
        parse_record({"amount": 0.001, "date": "2024-03-01"}, RecordKind.income)


def test_parse_record_raises_with_reason() -> None:
    with pytest.raises(ValidationFailed, match="Category is required."):
        parse_record({"amount": 5, "date": "2024-03-01"}, RecordKind.expense)


def test_signup_validation() -> None:
    good = {"name": "Asha", "email": "asha@example.com", "password": "longenough"}
    assert validate_signup(good).valid

    assert (
        validate_signup({"email": "asha@example.com", "password": "longenough"}).reason
        == "Name, email, and password are required"
    )
    assert (
        validate_signup({**good, "email": "not-an-email"}).reason
        == "Invalid email format"
    )
    assert (
        validate_signup({**good, "password": "short"}).reason
        == "Password must be at least 8 characters long"
    )


def test_parse_signup_strips_name_and_email() -> None:
    data = parse_signup(
        {"name": " Asha ", "email": " asha@example.com ", "password": "longenough"}
    )

    assert data.name == "Asha"
    assert data.email == "asha@example.com"


@pytest.mark.parametrize("amount", [1e30, 10**40, 10_000_000_000])
def test_amount_beyond_storable_range_is_rejected(amount) -> None:
    payload = {"amount": amount, "date": "2024-01-01"}

    assert validate_record(payload, RecordKind.income).reason == (
        "Valid amount is required."
    )
    with pytest.raises(ValidationFailed, match="Valid amount is required."):
        parse_record(payload, RecordKind.income)


def test_largest_storable_amount_is_accepted() -> None:
    data = parse_record(
        {"amount": 9_999_999_999.99, "date": "2024-01-01"}, RecordKind.income
    )

    assert data.amount == Decimal("9999999999.99")


def test_overlong_category_reports_its_length() -> None:
    payload = {"amount": 5, "date": "2024-03-01", "category": "x" * 65}

    assert validate_record(payload, RecordKind.expense).reason == (
        "Category must be at most 64 characters."
    )
    with pytest.raises(ValidationFailed, match="at most 64 characters"):
        parse_record(payload, RecordKind.expense)


def test_category_length_is_measured_after_trimming() -> None:
    data = parse_record(
        {"amount": 5, "date": "2024-03-01", "category": "  " + "x" * 64 + "  "},
        RecordKind.expense,
    )

    assert data.category == "x" * 64
