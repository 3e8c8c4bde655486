"""Boundary checks for record and signup payloads.

``validate_record`` and ``validate_signup`` are pure and report the first
problem found as a human readable reason. The ``parse_*`` helpers run the
same checks and hand back the typed request model, raising
``ValidationFailed`` instead.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Union

from pydantic import ValidationError

from errors import ValidationFailed
from models import RecordKind
from schemas import ExpenseIn, IncomeIn, SignupIn

AMOUNT_REASON = "Valid amount is required."
DATE_REASON = "Valid date is required."
CATEGORY_REASON = "Category is required."
CATEGORY_LENGTH_REASON = "Category must be at most 64 characters."
DESCRIPTION_REASON = "Description must be a string."
BODY_REASON = "Request body must be a JSON object."

SIGNUP_REQUIRED_REASON = "Name, email, and password are required"
SIGNUP_EMAIL_REASON = "Invalid email format"
SIGNUP_PASSWORD_REASON = "Password must be at least 8 characters long"
MIN_PASSWORD_LENGTH = 8
MAX_CATEGORY_LENGTH = 64
# Numeric(12, 2) holds at most ten integer digits
MAX_AMOUNT = 10**10

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_CENT = Decimal("0.01")

_FIELD_REASONS = {
    "amount": AMOUNT_REASON,
    "date": DATE_REASON,
    "category": CATEGORY_REASON,
    "description": DESCRIPTION_REASON,
    "name": SIGNUP_REQUIRED_REASON,
    "email": SIGNUP_EMAIL_REASON,
    "password": SIGNUP_PASSWORD_REASON,
}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def invalid(cls, reason: str) -> "ValidationResult":
        return cls(False, reason)


def is_valid_amount(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return 0 < value < MAX_AMOUNT


def is_valid_date(value: Any) -> bool:
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        return False
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        return False
    return parsed.isoformat() == value


def validate_record(payload: Any, kind: RecordKind) -> ValidationResult:
    if not isinstance(payload, dict):
        return ValidationResult.invalid(BODY_REASON)
    if not is_valid_amount(payload.get("amount")):
        return ValidationResult.invalid(AMOUNT_REASON)
    if not is_valid_date(payload.get("date")):
        return ValidationResult.invalid(DATE_REASON)
    if kind == RecordKind.expense:
        category = payload.get("category")
        if not isinstance(category, str) or not category.strip():
            return ValidationResult.invalid(CATEGORY_REASON)
        if len(category.strip()) > MAX_CATEGORY_LENGTH:
            return ValidationResult.invalid(CATEGORY_LENGTH_REASON)
    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        return ValidationResult.invalid(DESCRIPTION_REASON)
    return ValidationResult.ok()


def _reason_from(exc: ValidationError) -> str:
    for error in exc.errors():
        loc = error.get("loc") or ()
        if loc and loc[0] == "category" and error.get("type") == "string_too_long":
            return CATEGORY_LENGTH_REASON
        if loc and loc[0] in _FIELD_REASONS:
            return _FIELD_REASONS[str(loc[0])]
    return BODY_REASON


def parse_record(payload: Any, kind: RecordKind) -> Union[IncomeIn, ExpenseIn]:
    result = validate_record(payload, kind)
    if not result.valid:
        raise ValidationFailed(result.reason)

    try:
        amount = Decimal(str(payload["amount"])).quantize(
            _CENT, rounding=ROUND_HALF_UP
        )
    except InvalidOperation as exc:
        raise ValidationFailed(AMOUNT_REASON) from exc
    fields: dict[str, Any] = {
        "amount": amount,
        "description": payload.get("description") or None,
        "date": date.fromisoformat(payload["date"]),
    }
    try:
        if kind == RecordKind.expense:
            return ExpenseIn(category=payload["category"].strip(), **fields)
        return IncomeIn(**fields)
    except ValidationError as exc:
        raise ValidationFailed(_reason_from(exc)) from exc


def validate_signup(payload: Any) -> ValidationResult:
    if not isinstance(payload, dict):
        return ValidationResult.invalid(BODY_REASON)
    name = payload.get("name")
    email = payload.get("email")
    password = payload.get("password")
    for value in (name, email, password):
        if not isinstance(value, str) or not value.strip():
            return ValidationResult.invalid(SIGNUP_REQUIRED_REASON)
    if not _EMAIL_RE.fullmatch(email.strip()):
        return ValidationResult.invalid(SIGNUP_EMAIL_REASON)
    if len(password) < MIN_PASSWORD_LENGTH:
        return ValidationResult.invalid(SIGNUP_PASSWORD_REASON)
    return ValidationResult.ok()


def parse_signup(payload: Any) -> SignupIn:
    result = validate_signup(payload)
    if not result.valid:
        raise ValidationFailed(result.reason)
    try:
        return SignupIn(
            name=payload["name"].strip(),
            email=payload["email"].strip(),
            password=payload["password"],
        )
    except ValidationError as exc:
        raise ValidationFailed(_reason_from(exc)) from exc
