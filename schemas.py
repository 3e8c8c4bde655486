import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class IncomeIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    description: Optional[str] = None
    date: date


class ExpenseIn(IncomeIn):
    category: str = Field(..., min_length=1, max_length=64)


class IncomeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    amount: Decimal
    description: Optional[str]
    date: date
    created_at: datetime

    @field_serializer("amount")
    def _amount_as_number(self, value: Decimal) -> float:
        return float(value)


class ExpenseOut(IncomeOut):
    category: str


class SignupIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: str
    password: str = Field(..., min_length=8)


class UserSummary(BaseModel):
    id: str
    email: Optional[str]
    name: Optional[str]


class SignupOut(BaseModel):
    message: str = "User created successfully"
    user: UserSummary


class TotalsOut(BaseModel):
    income: float
    expenses: float
    balance: float


class MonthlyTotalsOut(TotalsOut):
    month: str
    start: dt.date
    end: dt.date


class CategoryTotalOut(BaseModel):
    category: str
    amount: float


class SummaryOut(BaseModel):
    totals: TotalsOut
    monthly: MonthlyTotalsOut
    categories: list[CategoryTotalOut]


class BalancePointOut(BaseModel):
    date: str
    income: float
    expenses: float
    balance: float
