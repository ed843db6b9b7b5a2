"""Console interface for the expense tracker."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from common.exceptions import PersistenceError, RecordNotFoundError, ValidationError
from common.models import Expense
from common.services import ExpenseService
from common.storage import JSONExpenseRepository, JSONFileStorage

DEFAULT_FILE = "expenses.json"
SUBCOMMAND_HINT = "expected 'add', 'list' or 'delete' subcommands"
ADD_USAGE = "Please provide description and amount. Example: add -desc 'Lunch' -amount 50"
DELETE_USAGE = "Usage: delete -id 1"
TABLE_RULE = "-" * 60
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _load_service(data_file: Path) -> ExpenseService:
    storage = JSONFileStorage(data_file)
    return ExpenseService(JSONExpenseRepository(storage))


def format_table(expenses: Iterable[Expense]) -> str:
    lines = [
        f"{'ID':<5} | {'Description':<20} | {'Amount':<10} | {'Category':<15}",
        TABLE_RULE,
    ]
    for expense in expenses:
        lines.append(
            f"{expense.id:<5d} | {expense.description:<20} | "
            f"{expense.amount:<10.2f} | {expense.category:<15}"
        )
    return "\n".join(lines)


def handle_add(args: argparse.Namespace, service: ExpenseService) -> None:
    # Zero doubles as "not provided", matching the flag defaults.
    if args.description == "" or args.amount == 0:
        print(ADD_USAGE)
        return
    expense = service.register_expense(args.description, args.amount, args.category)
    print(f"Expense added successfully! ID: {expense.id}")


def handle_list(args: argparse.Namespace, service: ExpenseService) -> None:
    print(format_table(service.list_expenses()))


def handle_delete(args: argparse.Namespace, service: ExpenseService) -> None:
    if args.id == 0:
        print(DELETE_USAGE)
        return
    service.remove_expense(args.id)
    print(f"Expense deleted successfully! ID: {args.id}")


HANDLERS = {
    "add": handle_add,
    "list": handle_list,
    "delete": handle_delete,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="expense-tracker", description="Expense Tracker CLI")
    parser.add_argument(
        "--file",
        default=Path(os.getenv("EXPENSE_TRACKER_FILE", DEFAULT_FILE)),
        type=Path,
        help=f"JSON file holding the expenses (default: ./{DEFAULT_FILE})",
    )
    parser.add_argument(
        "--log-level",
        default=os.getenv("EXPENSE_TRACKER_LOG_LEVEL", "WARNING"),
        type=str.upper,
        choices=LOG_LEVELS,
        help="Logging level for diagnostics written to stderr",
    )

    subparsers = parser.add_subparsers(dest="command")

    add_parser = subparsers.add_parser("add", help="Add a new expense")
    add_parser.add_argument("-desc", "--desc", dest="description", default="",
                            help="Description of the expense")
    add_parser.add_argument("-amount", "--amount", dest="amount", type=float, default=0.0,
                            help="Amount of the expense")
    add_parser.add_argument("-cat", "--cat", dest="category", default="General",
                            help="Category of the expense")

    subparsers.add_parser("list", help="List expenses")

    delete_parser = subparsers.add_parser("delete", help="Delete an expense")
    delete_parser.add_argument("-id", "--id", dest="id", type=int, default=0,
                               help="ID of the expense to delete")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level, stream=sys.stderr)

    if args.command is None:
        print(SUBCOMMAND_HINT)
        return 1

    try:
        service = _load_service(args.file)
    except PersistenceError as exc:
        print(f"Error loading data: {exc}", file=sys.stderr)
        return 1

    try:
        HANDLERS[args.command](args, service)
    except ValidationError as exc:
        print(f"Validation error: {exc}", file=sys.stderr)
        return 1
    except RecordNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except PersistenceError as exc:
        print(f"Error saving data: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
