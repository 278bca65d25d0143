# app/services/ledger_import.py
"""
Backfill a user's ledger from a normalized CSV file.

Used to seed historical transactions (with their original accounting dates)
before the API starts recording new ones. The file must have the columns
`date` (YYYY-MM-DD), `type` (credit/debit) and `amount`; `category_id` and
`description` are optional. Header names are case-insensitive.

A file is imported all-or-nothing: any invalid row aborts the import before
anything is written.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

import pandas as pd

from app.errors import LedgerValidationError, UnknownUserError
from app.services.import_helpers import build_transaction_from_dict
from app.services.ledger_store import LedgerStore
from models import Transaction

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"date", "type", "amount"}
OPTIONAL_COLUMNS = ("category_id", "description")


def _none_if_nan(x):
    if pd.isna(x):
        return None
    s = str(x).strip()
    return None if s == "" or s.lower() == "nan" else s


def read_ledger_csv(path: Path | str, user_id: int) -> List[Transaction]:
    """Parse and validate a ledger CSV into unsaved Transaction objects."""
    path = Path(path)
    # keep blank lines so the frame index maps to the file line (header is line 1)
    df = pd.read_csv(path, dtype=str, keep_default_na=True, skip_blank_lines=False)

    # normalize headers
    df.columns = df.columns.str.strip().str.lower()

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise LedgerValidationError(f"{path.name}: missing required columns: {sorted(missing)}")

    for col in OPTIONAL_COLUMNS:
        if col not in df.columns:
            df[col] = None

    # drop fully empty rows
    df = df.dropna(how="all").copy()

    rows: List[Transaction] = []
    for index, row in zip(df.index, df.to_dict(orient="records")):
        line_no = int(index) + 2
        cleaned = {key: _none_if_nan(value) for key, value in row.items()}
        try:
            rows.append(build_transaction_from_dict(cleaned, user_id))
        except (LedgerValidationError, ValueError) as e:
            raise LedgerValidationError(f"{path.name}, line {line_no}: {e}") from e
    return rows


def import_ledger_csv(store: LedgerStore, path: Path | str, user_id: int) -> int:
    """
    Append every row of `path` to the ledger of `user_id`.
    Returns the number of inserted transactions.
    """
    if store.get_user(user_id) is None:
        raise UnknownUserError(f"Unknown user {user_id}.")

    rows = read_ledger_csv(path, user_id)
    if not rows:
        logger.info("%s: no rows to import", Path(path).name)
        return 0

    inserted = store.insert_many(rows)
    logger.info("imported %d transactions from %s for user %s", inserted, Path(path).name, user_id)
    return inserted
