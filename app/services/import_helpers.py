# app/services/import_helpers.py
#
# Ledger Helper Functions
# Date-window arithmetic shared by the balance reports, and conversion of
# parsed ledger rows (dicts) into Transaction ORM objects.

from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import List

from app.errors import LedgerValidationError
from models import Transaction, TransactionType


# ---- Date Windows ----

def days_back(today: date, offset: int) -> date:
    """The calendar date `offset` days before `today` (offset 0 is today)."""
    return today - timedelta(days=offset)


def window_start(today: date, last_n_days: int) -> date:
    """Inclusive lower bound of a 'last N days' window."""
    return today - timedelta(days=last_n_days)


def dates_back(today: date, num_days: int) -> List[date]:
    """`num_days` consecutive dates ending today, newest first."""
    return [days_back(today, i) for i in range(max(num_days, 0))]


# ---- Row Conversion ----

def parse_amount(raw) -> Decimal:
    """
    Parse a positive two-decimal amount. Accepts numbers or strings with
    either '.' or ',' as decimal separator.
    """
    s = str(raw).strip().replace(" ", "").replace(",", ".")
    try:
        amount = Decimal(s)
    except InvalidOperation:
        raise LedgerValidationError(f"amount is not a number: {raw!r}") from None
    try:
        cents = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise LedgerValidationError(f"amount is not a usable number: {raw!r}") from None
    if cents != amount:
        raise LedgerValidationError(f"amount must have at most 2 decimal places, got {raw!r}")
    if cents <= 0:
        raise LedgerValidationError(f"amount must be positive, got {raw!r}")
    return cents


def parse_kind(raw) -> TransactionType:
    if isinstance(raw, TransactionType):
        return raw
    value = str(raw or "").strip().lower()
    try:
        return TransactionType(value)
    except ValueError:
        raise LedgerValidationError(
            f"transaction type must be either credit or debit, got {raw!r}"
        ) from None


def build_transaction_from_dict(tx: dict, user_id: int) -> Transaction:
    """
    Convert one cleaned ledger row into a Transaction ORM object for `user_id`.

    Expected keys: date (date or 'YYYY-MM-DD'), type, amount,
    optional category_id and description.
    """

    date_raw = tx.get("date")
    if isinstance(date_raw, str):
        try:
            date_parsed = datetime.strptime(date_raw.strip(), "%Y-%m-%d").date()
        except ValueError:
            raise LedgerValidationError(f"date must be YYYY-MM-DD, got {date_raw!r}") from None
    elif isinstance(date_raw, datetime):
        date_parsed = date_raw.date()
    elif isinstance(date_raw, date):
        date_parsed = date_raw  # already a date object
    else:
        raise LedgerValidationError(f"date is required, got {date_raw!r}")

    category_raw = tx.get("category_id")
    category_id: int | None
    if category_raw is None or str(category_raw).strip() == "":
        category_id = None
    else:
        category_id = int(float(category_raw))

    description = tx.get("description")
    if description is not None:
        description = str(description).strip() or None

    return Transaction(
        trans_user_id=user_id,
        trans_date=date_parsed,
        trans_amount=parse_amount(tx.get("amount")),
        trans_type=parse_kind(tx.get("type")),
        category_id=category_id,
        description=description,
    )
