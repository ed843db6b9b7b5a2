"""Relational persistence for the HTTP variant, built on SQLAlchemy."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy import DateTime, Float, Integer, String, create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .cancellation import CancellationToken, ensure_token
from .exceptions import OperationCancelledError, PersistenceError, RecordNotFoundError
from .models import Expense, as_utc
from .repository import ExpenseRepository

logger = logging.getLogger(__name__)

# SQLite invokes the progress handler every N virtual machine instructions.
PROGRESS_HANDLER_STEPS = 1000


class Base(DeclarativeBase):
    pass


class ExpenseRow(Base):
    __tablename__ = "expenses"
    # Never hand out the id of a deleted row again, as a serial column would.
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(String, nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False, default="")
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_expense(self) -> Expense:
        return Expense(
            id=self.id,
            description=self.description,
            amount=self.amount,
            category=self.category,
            date=as_utc(self.date),
        )


def create_engine_from_url(url: str, **kwargs) -> Engine:
    """Build an engine, sharing a single connection for in-memory SQLite."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs.setdefault("poolclass", StaticPool)
    return create_engine(url, **kwargs)


def init_schema(engine: Engine) -> None:
    """Create the expenses table when it does not exist yet."""
    Base.metadata.create_all(engine)


class SQLExpenseRepository(ExpenseRepository):
    """Expense store backed by a relational table.

    Row locking and statement atomicity are left to the database engine; no
    locks are taken here.
    """

    def __init__(self, engine: Engine) -> None:
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

    def create(self, expense: Expense, token: Optional[CancellationToken] = None) -> Expense:
        row = ExpenseRow(
            description=expense.description,
            amount=expense.amount,
            category=expense.category,
            date=expense.date,
        )
        with self._session(token, "failed to insert expense") as session:
            session.add(row)
            session.flush()
            new_id = row.id
            ensure_token(token).raise_if_cancelled()
            session.commit()
        logger.debug("Inserted expense %s", new_id)
        return expense.with_id(new_id)

    def get_all(self, token: Optional[CancellationToken] = None) -> List[Expense]:
        with self._session(token, "failed to query expenses") as session:
            rows = session.scalars(select(ExpenseRow)).all()
            return [row.to_expense() for row in rows]

    def get_by_id(self, expense_id: int, token: Optional[CancellationToken] = None) -> Expense:
        with self._session(token, "failed to get expense") as session:
            row = session.get(ExpenseRow, expense_id)
            if row is None:
                raise RecordNotFoundError("expense not found")
            return row.to_expense()

    def delete(self, expense_id: int, token: Optional[CancellationToken] = None) -> None:
        with self._session(token, "failed to delete expense") as session:
            result = session.execute(delete(ExpenseRow).where(ExpenseRow.id == expense_id))
            if result.rowcount == 0:
                session.rollback()
                raise RecordNotFoundError("expense not found")
            ensure_token(token).raise_if_cancelled()
            session.commit()

    # The token is never checked after a successful commit.
    @contextmanager
    def _session(self, token: Optional[CancellationToken], failure: str) -> Iterator[Session]:
        token = ensure_token(token)
        token.raise_if_cancelled()
        try:
            with self._session_factory() as session:
                with _interruptible(session, token):
                    yield session
        except SQLAlchemyError as exc:
            if token.cancelled:
                raise OperationCancelledError(f"{failure}: operation cancelled") from exc
            raise PersistenceError(f"{failure}: {exc}") from exc


@contextmanager
def _interruptible(session: Session, token: CancellationToken) -> Iterator[None]:
    """Abort running SQLite statements as soon as ``token`` fires.

    Other backends only get the checks before the session opens and before commit.
    """
    if session.get_bind().dialect.name != "sqlite":
        yield
        return

    dbapi_connection = session.connection().connection.dbapi_connection
    dbapi_connection.set_progress_handler(lambda: 1 if token.cancelled else 0, PROGRESS_HANDLER_STEPS)
    try:
        yield
    finally:
        dbapi_connection.set_progress_handler(None, PROGRESS_HANDLER_STEPS)

