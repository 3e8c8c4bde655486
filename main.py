import json
import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from auth import AuthProvider, AuthUser, get_auth_provider, get_current_user
from config import get_settings
from database import get_db
from errors import (
    EmailAlreadyRegistered,
    NotFound,
    RateLimited,
    Unauthenticated,
    UpstreamFailure,
    ValidationFailed,
)
from models import RecordKind
from periods import resolve_month, today_in
from rate_limit import InMemoryCounterStore, RateLimiter, client_id_from_request
from reports import (
    balance_series,
    category_breakdown,
    monthly_totals,
    top_categories,
    totals,
)
from scheduler import SchedulerManager
from schemas import (
    BalancePointOut,
    CategoryTotalOut,
    ExpenseOut,
    IncomeOut,
    MonthlyTotalsOut,
    SignupOut,
    SummaryOut,
    TotalsOut,
    UserSummary,
)
from services import ExpenseService, IncomeService, SignupService
from validation import parse_record, parse_signup

settings = get_settings()

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


def _load_app_version() -> str:
    try:
        import tomllib
    except Exception:
        return "unknown"
    try:
        with open("pyproject.toml", "rb") as f:
            data = tomllib.load(f)
        return str(data.get("project", {}).get("version", "unknown"))
    except Exception:
        return "unknown"


APP_VERSION = _load_app_version()

app = FastAPI(title="Finance Tracker", version=APP_VERSION)

rate_limiter = RateLimiter(
    InMemoryCounterStore(),
    limit=settings.rate_limit,
    window_secs=settings.rate_window_secs,
)
scheduler_manager = SchedulerManager(rate_limiter)


@app.on_event("startup")
def startup_event():
    scheduler_manager.start()


@app.on_event("shutdown")
def shutdown_event():
    scheduler_manager.stop()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


@app.exception_handler(Unauthenticated)
async def unauthenticated_handler(request: Request, exc: Unauthenticated):
    return _error(401, exc.message)


@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    return _error(400, str(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return _error(400, "Invalid request")
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "request"
    return _error(400, f"Invalid {field}: {first.get('msg', 'invalid value')}")


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return _error(404, str(exc))


@app.exception_handler(EmailAlreadyRegistered)
async def email_registered_handler(request: Request, exc: EmailAlreadyRegistered):
    return _error(409, str(exc))


@app.exception_handler(RateLimited)
async def rate_limited_handler(request: Request, exc: RateLimited):
    return _error(429, exc.message)


@app.exception_handler(UpstreamFailure)
async def upstream_failure_handler(request: Request, exc: UpstreamFailure):
    logger.error(f"upstream_failure: path={request.url.path} error={exc}")
    return _error(500, str(exc) or "Internal Server Error")


@app.exception_handler(Exception)
async def unexpected_failure_handler(request: Request, exc: Exception):
    logger.exception(f"unexpected_failure: path={request.url.path}")
    return _error(500, "Internal Server Error")


def get_rate_limiter() -> RateLimiter:
    return rate_limiter


def enforce_rate_limit(
    request: Request, limiter: RateLimiter = Depends(get_rate_limiter)
) -> None:
    if not limiter.check(client_id_from_request(request)):
        raise RateLimited()


async def json_body(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ValidationFailed("Invalid JSON body") from exc


# ----------------------------------------------------------------------------
# Income
# ----------------------------------------------------------------------------


@app.get(
    "/api/incomes",
    response_model=list[IncomeOut],
    dependencies=[Depends(enforce_rate_limit)],
)
def list_incomes(
    user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)
):
    records = IncomeService(db, user.id).get_all()
    return [IncomeOut.model_validate(record) for record in records]


@app.post(
    "/api/incomes",
    response_model=IncomeOut,
    status_code=201,
    dependencies=[Depends(enforce_rate_limit)],
)
def create_income(
    user: AuthUser = Depends(get_current_user),
    payload: Any = Depends(json_body),
    db: Session = Depends(get_db),
):
    data = parse_record(payload, RecordKind.income)
    record = IncomeService(db, user.id).create(data)
    return IncomeOut.model_validate(record)


@app.put("/api/incomes/{income_id}", response_model=IncomeOut)
def update_income(
    income_id: str,
    user: AuthUser = Depends(get_current_user),
    payload: Any = Depends(json_body),
    db: Session = Depends(get_db),
):
    data = parse_record(payload, RecordKind.income)
    record = IncomeService(db, user.id).update(income_id, data)
    return IncomeOut.model_validate(record)


@app.delete("/api/incomes/{income_id}")
def delete_income(
    income_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    IncomeService(db, user.id).delete(income_id)
    return {"message": "Income deleted successfully"}


# ----------------------------------------------------------------------------
# Expenses
# ----------------------------------------------------------------------------


@app.get(
    "/api/expenses",
    response_model=list[ExpenseOut],
    dependencies=[Depends(enforce_rate_limit)],
)
def list_expenses(
    user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)
):
    records = ExpenseService(db, user.id).get_all()
    return [ExpenseOut.model_validate(record) for record in records]


@app.post(
    "/api/expenses",
    response_model=ExpenseOut,
    status_code=201,
    dependencies=[Depends(enforce_rate_limit)],
)
def create_expense(
    user: AuthUser = Depends(get_current_user),
    payload: Any = Depends(json_body),
    db: Session = Depends(get_db),
):
    data = parse_record(payload, RecordKind.expense)
    record = ExpenseService(db, user.id).create(data)
    return ExpenseOut.model_validate(record)


@app.put("/api/expenses/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: str,
    user: AuthUser = Depends(get_current_user),
    payload: Any = Depends(json_body),
    db: Session = Depends(get_db),
):
    data = parse_record(payload, RecordKind.expense)
    record = ExpenseService(db, user.id).update(expense_id, data)
    return ExpenseOut.model_validate(record)


@app.delete("/api/expenses/{expense_id}")
def delete_expense(
    expense_id: str,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ExpenseService(db, user.id).delete(expense_id)
    return {"message": "Expense deleted successfully"}


# ----------------------------------------------------------------------------
# Reports
# ----------------------------------------------------------------------------


@app.get("/api/summary", response_model=SummaryOut)
def api_summary(
    month: Optional[str] = None,
    top: int = Query(5, ge=1, le=50),
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        period = resolve_month(month, today=today_in(settings.timezone))
    except ValueError as exc:
        raise ValidationFailed(str(exc)) from exc

    income = IncomeService(db, user.id).get_all()
    expenses = ExpenseService(db, user.id).get_all()

    overall = totals(income, expenses)
    monthly = monthly_totals(income, expenses, period.slug)
    breakdown = category_breakdown(expenses, period.slug)
    return SummaryOut(
        totals=TotalsOut(
            income=overall.income, expenses=overall.expenses, balance=overall.balance
        ),
        monthly=MonthlyTotalsOut(
            month=period.slug,
            start=period.start,
            end=period.end,
            income=monthly.income,
            expenses=monthly.expenses,
            balance=monthly.balance,
        ),
        categories=[
            CategoryTotalOut(category=name, amount=amount)
            for name, amount in top_categories(breakdown, top)
        ],
    )


@app.get("/api/balance-series", response_model=list[BalancePointOut])
def api_balance_series(
    user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)
):
    income = IncomeService(db, user.id).get_all()
    expenses = ExpenseService(db, user.id).get_all()
    return [
        BalancePointOut(
            date=point.date,
            income=point.income,
            expenses=point.expenses,
            balance=point.balance,
        )
        for point in balance_series(income, expenses)
    ]


# ----------------------------------------------------------------------------
# Auth
# ----------------------------------------------------------------------------


@app.post("/api/auth/signup", response_model=SignupOut, status_code=201)
def signup(
    payload: Any = Depends(json_body),
    provider: AuthProvider = Depends(get_auth_provider),
):
    data = parse_signup(payload)
    user = SignupService(provider).signup(data)
    return SignupOut(
        user=UserSummary(
            id=user.id,
            email=user.email or data.email,
            name=user.name or data.name,
        )
    )


if __name__ == "__main__":
    import os

    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
