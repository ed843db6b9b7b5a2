"""Flask REST API exposing the expense tracker services."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional, Tuple

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from api.config import Settings
from common.cancellation import CancellationToken
from common.database import SQLExpenseRepository, create_engine_from_url, init_schema
from common.exceptions import (
    ExpenseTrackerError,
    PersistenceError,
    RecordNotFoundError,
    ValidationError,
)
from common.services import ExpenseService

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_ID_MIN, _ID_MAX = -(2**63), 2**63 - 1


class InvalidRequest(Exception):
    """Raised by request parsing helpers; rendered as a plain-text 400."""


def create_app(settings: Optional[Settings] = None, service: Optional[ExpenseService] = None) -> Flask:
    app = Flask(__name__)
    settings = settings or Settings.from_env()
    app.config["EXPENSE_TRACKER_SETTINGS"] = settings

    if settings.is_dev:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    elif settings.allowed_origins:
        CORS(app, resources={r"/*": {"origins": settings.allowed_origins}}, supports_credentials=True)
    else:
        CORS(app)

    if service is None:
        engine = create_engine_from_url(settings.database_url)
        init_schema(engine)
        service = ExpenseService(SQLExpenseRepository(engine))
    app.extensions["expense_service"] = service

    def _text(message: str, status: int) -> Response:
        return Response(message, status=status, mimetype="text/plain")

    def _handle_error(exc: Exception, status: int, message: str) -> Response:
        log = app.logger.error if status >= 500 else app.logger.warning
        log("%s %s -> %s: %s", request.method, request.path, status, exc)
        return _text(message, status)

    @app.errorhandler(InvalidRequest)
    def handle_bad_request(exc: InvalidRequest):
        return _handle_error(exc, 400, str(exc))

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, str(exc))

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Expense not found")

    @app.errorhandler(PersistenceError)
    def handle_persistence_error(exc: PersistenceError):
        return _handle_error(exc, 500, str(exc))

    @app.errorhandler(405)
    def handle_method_not_allowed(exc):
        return _text("Method not allowed", 405)

    def _request_token() -> CancellationToken:
        return CancellationToken.with_timeout(settings.request_timeout)

    def _json_body() -> Tuple[Any, Any, Any]:
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            raise InvalidRequest("Invalid request body")
        description = data.get("description")
        amount = data.get("amount")
        category = data.get("category")
        # Absent or null fields fall back to zero values and are judged by the service.
        if description is None:
            description = ""
        if amount is None:
            amount = 0
        if category is None:
            category = ""
        if not isinstance(description, str) or not isinstance(category, str):
            raise InvalidRequest("Invalid request body")
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise InvalidRequest("Invalid request body")
        return description, amount, category

    def _parse_id(raw_id: str, message: str) -> int:
        if not _ID_PATTERN.fullmatch(raw_id):
            raise InvalidRequest(message)
        expense_id = int(raw_id)
        if not _ID_MIN <= expense_id <= _ID_MAX:
            raise InvalidRequest(message)
        return expense_id

    @app.post("/expenses")
    def create_expense():
        description, amount, category = _json_body()
        expense = service.register_expense(description, amount, category, _request_token())
        return jsonify(expense.to_dict()), 201

    @app.get("/expenses")
    def list_expenses():
        try:
            expenses = service.list_expenses(_request_token())
        except ExpenseTrackerError as exc:
            return _handle_error(exc, 500, "Failed to fetch expenses")
        return jsonify([expense.to_dict() for expense in expenses])

    @app.get("/expenses/", defaults={"raw_id": ""})
    @app.get("/expenses/<path:raw_id>")
    def get_expense(raw_id: str):
        expense_id = _parse_id(raw_id, "Invalid ID")
        expense = service.get_expense_details(expense_id, _request_token())
        return jsonify(expense.to_dict())

    @app.delete("/expenses/", defaults={"raw_id": ""})
    @app.delete("/expenses/<path:raw_id>")
    def delete_expense(raw_id: str):
        if raw_id == "":
            raise InvalidRequest("Missing ID")
        expense_id = _parse_id(raw_id, "Invalid ID format")
        try:
            service.remove_expense(expense_id, _request_token())
        except ExpenseTrackerError as exc:
            # Deletion reports every failure, not-found included, as a server error.
            return _handle_error(exc, 500, str(exc))
        return _text("Expense deleted", 200)

    return app


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = create_app(settings)
    app.logger.info("Server starting on %s:%s...", settings.host, settings.port)
    app.run(host=settings.host, port=settings.port, threaded=True)


if __name__ == "__main__":
    main()
