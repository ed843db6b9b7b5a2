from datetime import datetime, timezone
from typing import List, Optional

import pytest

from api.app import create_app
from api.config import Settings
from common.cancellation import CancellationToken
from common.database import SQLExpenseRepository, create_engine_from_url, init_schema
from common.exceptions import PersistenceError
from common.models import Expense
from common.repository import ExpenseRepository
from common.services import ExpenseService
from common.storage import JSONExpenseRepository, JSONFileStorage


class BrokenRepository(ExpenseRepository):
    """Repository whose every call fails with a storage error."""

    def create(self, expense: Expense, token: Optional[CancellationToken] = None) -> Expense:
        raise PersistenceError("failed to insert expense: connection refused")

    def get_all(self, token: Optional[CancellationToken] = None) -> List[Expense]:
        raise PersistenceError("failed to query expenses: connection refused")

    def get_by_id(self, expense_id: int, token: Optional[CancellationToken] = None) -> Expense:
        raise PersistenceError("failed to get expense: connection refused")

    def delete(self, expense_id: int, token: Optional[CancellationToken] = None) -> None:
        raise PersistenceError("failed to delete expense: connection refused")


@pytest.fixture
def engine():
    engine = create_engine_from_url("sqlite://")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_repository(engine):
    return SQLExpenseRepository(engine)


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "expenses.json"


@pytest.fixture
def json_repository(data_file):
    return JSONExpenseRepository(JSONFileStorage(data_file))


@pytest.fixture(params=["sql", "json"])
def repository(request, sql_repository, json_repository):
    return sql_repository if request.param == "sql" else json_repository


@pytest.fixture
def service(repository):
    return ExpenseService(repository)


@pytest.fixture
def app(sql_repository):
    settings = Settings(database_url="sqlite://", request_timeout=0)
    app = create_app(settings, service=ExpenseService(sql_repository))
    app.config.update(TESTING=True)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def broken_client():
    settings = Settings(database_url="sqlite://", request_timeout=0)
    app = create_app(settings, service=ExpenseService(BrokenRepository()))
    app.config.update(TESTING=True)
    return app.test_client()


def make_expense(description="Lunch", amount=12.5, category="Food") -> Expense:
    return Expense(
        description=description,
        amount=amount,
        category=category,
        date=datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
    )
