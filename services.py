from __future__ import annotations

import logging
from typing import Generic, TypeVar, Union

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import AuthProvider, AuthUser
from errors import (
    AuthProviderError,
    EmailAlreadyRegistered,
    NotFound,
    UpstreamFailure,
)
from models import Expense, Income
from schemas import ExpenseIn, IncomeIn, SignupIn

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", Income, Expense)


def _store_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig or exc)


class RecordService(Generic[RecordT]):
    model: type[RecordT]
    label: str

    def __init__(self, session: Session, user_id: str) -> None:
        self.session = session
        self.user_id = user_id

    def _fail(self, action: str, exc: SQLAlchemyError) -> UpstreamFailure:
        self.session.rollback()
        message = _store_message(exc)
        logger.error(
            f"store_error: table={self.model.__tablename__} action={action} "
            f"user={self.user_id} error={message}"
        )
        return UpstreamFailure(message)

    def get_all(self) -> list[RecordT]:
        stmt = (
            select(self.model)
            .where(self.model.user_id == self.user_id)
            .order_by(self.model.date.desc(), self.model.created_at.desc())
        )
        try:
            return list(self.session.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise self._fail("query", exc) from exc

    def get(self, record_id: str) -> RecordT:
        stmt = select(self.model).where(
            self.model.user_id == self.user_id, self.model.id == record_id
        )
        try:
            record = self.session.scalar(stmt)
        except SQLAlchemyError as exc:
            raise self._fail("get", exc) from exc
        if record is None:
            raise NotFound(f"{self.label} record not found")
        return record

    def _values(self, data: Union[IncomeIn, ExpenseIn]) -> dict[str, object]:
        return {
            "amount": data.amount,
            "description": data.description,
            "date": data.date,
        }

    def create(self, data: Union[IncomeIn, ExpenseIn]) -> RecordT:
        record = self.model(user_id=self.user_id, **self._values(data))
        try:
            self.session.add(record)
            self.session.commit()
            self.session.refresh(record)
        except SQLAlchemyError as exc:
            raise self._fail("create", exc) from exc
        if record.id is None:
            raise UpstreamFailure("creation failed")
        logger.info(
            f"record_created: table={self.model.__tablename__} id={record.id} "
            f"user={self.user_id}"
        )
        return record

    def update(self, record_id: str, data: Union[IncomeIn, ExpenseIn]) -> RecordT:
        record = self.get(record_id)
        for field, value in self._values(data).items():
            setattr(record, field, value)
        try:
            self.session.commit()
            self.session.refresh(record)
        except SQLAlchemyError as exc:
            raise self._fail("update", exc) from exc
        return record

    def delete(self, record_id: str) -> None:
        stmt = delete(self.model).where(
            self.model.user_id == self.user_id, self.model.id == record_id
        )
        try:
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                self.session.rollback()
                raise NotFound(f"{self.label} record not found")
            self.session.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete", exc) from exc
        logger.info(
            f"record_deleted: table={self.model.__tablename__} id={record_id} "
            f"user={self.user_id}"
        )


class IncomeService(RecordService[Income]):
    model = Income
    label = "Income"


class ExpenseService(RecordService[Expense]):
    model = Expense
    label = "Expense"

    def _values(self, data: Union[IncomeIn, ExpenseIn]) -> dict[str, object]:
        values = super()._values(data)
        values["category"] = data.category
        return values


class SignupService:
    def __init__(self, provider: AuthProvider) -> None:
        self.provider = provider

    def signup(self, data: SignupIn) -> AuthUser:
        try:
            user = self.provider.create_user(data.email, data.password, data.name)
        except AuthProviderError as exc:
            if _is_duplicate_email(exc):
                raise EmailAlreadyRegistered("Email already registered") from exc
            logger.error(f"signup_failed: status={exc.status} error={exc}")
            raise
        logger.info(f"user_created: id={user.id}")
        return user


def _is_duplicate_email(exc: AuthProviderError) -> bool:
    if exc.code == "email_exists":
        return True
    message = str(exc).lower()
    return exc.status in (400, 409, 422) and "already" in message
