# app/errors.py
# Role: Typed failures raised by the ledger core.
#       main.py maps each class to its own response shape.

"""
Error taxonomy for the ledger.

Every failure the core can report is a subclass of LedgerError, so the HTTP
boundary can translate each kind into a distinct response without a generic
catch-all.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict


class LedgerError(Exception):
    """Base class for all ledger failures."""


class LedgerValidationError(LedgerError):
    """Input that can never form a valid transaction (amount <= 0, unknown kind)."""


class UnknownUserError(LedgerError):
    """The request did not identify an existing user."""


class PersistenceError(LedgerError):
    """The storage layer failed; nothing was written."""


class DayCountError(LedgerError):
    """
    A day count used as a divisor is zero or negative.

    Averages divide by the requested number of days, so this is the ledger's
    division-by-zero failure.
    """

    def __init__(self, name: str, value: int):
        super().__init__(f"{name} must be a positive number of days, got {value}")
        self.name = name
        self.value = value


class InsufficientBalanceError(LedgerError):
    """A debit larger than the available balance was refused."""

    def __init__(
        self,
        user_id: int,
        attempted_at: datetime,
        attempted_amount: Decimal,
        available_balance: Decimal,
    ):
        super().__init__(
            "The debit transaction could not be completed due to insufficient balance."
        )
        self.user_id = user_id
        self.attempted_at = attempted_at
        self.attempted_amount = attempted_amount
        self.available_balance = available_balance

    def context(self) -> Dict[str, Any]:
        return {
            "trans_user_id": self.user_id,
            "attempted_trans_date": self.attempted_at,
            "attempted_trans_amount": self.attempted_amount,
            "available_balance": self.available_balance,
        }
