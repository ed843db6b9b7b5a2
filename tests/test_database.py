from datetime import timezone

import pytest
from sqlalchemy import text
from sqlalchemy.orm import Session

from common.cancellation import CancellationToken
from common.database import SQLExpenseRepository, create_engine_from_url, init_schema
from common.exceptions import OperationCancelledError, PersistenceError, RecordNotFoundError
from conftest import make_expense


def test_create_returns_generated_id(sql_repository):
    first = sql_repository.create(make_expense("Lunch"))
    second = sql_repository.create(make_expense("Taxi"))

    assert first.id == 1
    assert second.id == 2


def test_dates_come_back_as_utc(sql_repository):
    created = sql_repository.create(make_expense())

    fetched = sql_repository.get_by_id(created.id)

    assert fetched.date == created.date
    assert fetched.date.tzinfo == timezone.utc


def test_delete_of_missing_row_is_not_found(sql_repository):
    with pytest.raises(RecordNotFoundError, match="expense not found"):
        sql_repository.delete(5)


def test_ids_are_not_reused_after_delete(sql_repository):
    sql_repository.create(make_expense("Lunch"))
    second = sql_repository.create(make_expense("Taxi"))
    sql_repository.delete(second.id)

    third = sql_repository.create(make_expense("Book"))

    assert third.id != second.id


def test_schema_init_is_idempotent(engine):
    init_schema(engine)
    init_schema(engine)

    assert SQLExpenseRepository(engine).get_all() == []


def test_driver_failures_are_wrapped(engine):
    with engine.begin() as connection:
        connection.execute(text("DROP TABLE expenses"))
    repository = SQLExpenseRepository(engine)

    with pytest.raises(PersistenceError, match="failed to query expenses") as excinfo:
        repository.get_all()
    assert not isinstance(excinfo.value, RecordNotFoundError)
    assert excinfo.value.cause is not None


def test_cancelled_token_skips_the_database(sql_repository):
    token = CancellationToken()
    token.cancel()

    with pytest.raises(OperationCancelledError):
        sql_repository.create(make_expense(), token)
    assert sql_repository.get_all() == []


def test_running_sqlite_statement_is_interrupted(engine):
    repository = SQLExpenseRepository(engine)
    token = CancellationToken()

    # Fire the token from inside SQLite once the statement is already running.
    def cancel_mid_query(value):
        token.cancel()
        return value

    with engine.connect() as connection:
        connection.connection.dbapi_connection.create_function("cancel_mid_query", 1, cancel_mid_query)

    long_query = text(
        "WITH RECURSIVE n(i) AS (SELECT 1 UNION ALL SELECT i + 1 FROM n WHERE i < 10000000) "
        "SELECT count(cancel_mid_query(i)) FROM n"
    )

    with pytest.raises(OperationCancelledError):
        with repository._session(token, "failed to count") as session:
            session.execute(long_query)


def test_file_database_is_shared_between_engines(tmp_path):
    url = f"sqlite:///{tmp_path / 'expenses.db'}"
    writer = create_engine_from_url(url)
    init_schema(writer)
    SQLExpenseRepository(writer).create(make_expense())

    reader = SQLExpenseRepository(create_engine_from_url(url))

    assert [e.description for e in reader.get_all()] == ["Lunch"]


def test_cancellation_after_commit_keeps_the_result(sql_repository, monkeypatch):
    token = CancellationToken()
    real_commit = Session.commit

    def commit_then_cancel(self):
        real_commit(self)
        token.cancel()

    monkeypatch.setattr(Session, "commit", commit_then_cancel)

    created = sql_repository.create(make_expense(), token)

    assert created.id == 1
    assert [e.id for e in sql_repository.get_all()] == [1]

    token = CancellationToken()
    sql_repository.delete(created.id, token)

    assert token.cancelled
    assert sql_repository.get_all() == []


def test_cancellation_before_commit_rolls_back(sql_repository, monkeypatch):
    token = CancellationToken()
    real_flush = Session.flush

    def flush_then_cancel(self, *args, **kwargs):
        real_flush(self, *args, **kwargs)
        token.cancel()

    monkeypatch.setattr(Session, "flush", flush_then_cancel)

    with pytest.raises(OperationCancelledError):
        sql_repository.create(make_expense(), token)

    monkeypatch.undo()
    assert sql_repository.get_all() == []
