# app/services/balance_engine.py
"""
Balance Engine: rebuilds a user's balance from the ledger and derives reports.

A balance is never stored. `reconstruct_balance` folds every transaction up
to a date over the user's initial balance, and every report is defined in
terms of that fold or an equivalent aggregate query on the Ledger Store.

Known limitation: `record_transaction` reads the balance, checks it, then
inserts. Two concurrent debits for the same user can both pass the check and
overdraw the account. Pass `serialize_writes=True` to hold a per-user lock
across the read-check-insert sequence (this only covers a single process).
"""

import enum
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Optional

from app.config import (
    DEFAULT_EXCLUDED_CATEGORY_ID,
    DEFAULT_INCOME_THRESHOLD,
    DEFAULT_LAST_N_DAYS,
    DEFAULT_REQUESTED_DAYS,
    DEFAULT_SEGMENT_FIRST_DAYS,
    DEFAULT_SEGMENT_LAST_DAYS,
    DEFAULT_SEGMENT_TOTAL_DAYS,
)
from app.errors import DayCountError, InsufficientBalanceError
from app.services.import_helpers import dates_back, days_back, parse_amount, parse_kind, window_start
from app.services.ledger_store import LedgerFilter, LedgerStore
from models import Transaction, TransactionType, User

logger = logging.getLogger(__name__)


class SegmentPairing(str, enum.Enum):
    """
    How average_segment_balance pairs day ranges with divisors.

    LEGACY reproduces the historical endpoint: the most recent `first_n_days`
    are summed and divided by `last_n_days` (reported as the last segment), and
    the oldest `last_n_days` of the window are divided by `first_n_days`
    (reported as the first segment).

    CORRECTED sums the oldest `first_n_days` of the window for the first
    segment and the most recent `last_n_days` for the last segment, each
    divided by its own length.

    Both agree whenever first_n_days == last_n_days.
    """

    LEGACY = "legacy"
    CORRECTED = "corrected"


@dataclass(frozen=True)
class RecordedTransaction:
    transaction: Transaction
    balance_after: Decimal


@dataclass(frozen=True)
class SegmentAverages:
    first_segment_average: Decimal
    last_segment_average: Decimal


# Per-user write locks, shared by every engine in the process
_USER_LOCKS: Dict[int, threading.Lock] = {}
_USER_LOCKS_GUARD = threading.Lock()


def _user_lock(user_id: int) -> threading.Lock:
    with _USER_LOCKS_GUARD:
        lock = _USER_LOCKS.get(user_id)
        if lock is None:
            lock = _USER_LOCKS[user_id] = threading.Lock()
        return lock


def _positive_days(name: str, value: int) -> int:
    if value <= 0:
        raise DayCountError(name, value)
    return value


class BalanceEngine:
    def __init__(
        self,
        store: LedgerStore,
        today: Callable[[], date] = date.today,
        segment_pairing: SegmentPairing = SegmentPairing.LEGACY,
        serialize_writes: bool = False,
    ):
        self.store = store
        self.today = today
        self.segment_pairing = SegmentPairing(segment_pairing)
        self.serialize_writes = serialize_writes

    # -------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------

    def record_transaction(
        self,
        user: User,
        kind,
        amount,
        category_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> RecordedTransaction:
        """
        Append one transaction dated today and return it with the balance that
        follows it.

        A debit larger than the current balance raises InsufficientBalanceError
        and writes nothing. `balance_after` is computed from the balance read
        before the insert, not re-read from the store.
        """
        kind = parse_kind(kind)
        amount = parse_amount(amount)

        if not self.serialize_writes:
            return self._record(user, kind, amount, category_id, description)

        with _user_lock(user.id):
            return self._record(user, kind, amount, category_id, description)

    def _record(self, user, kind, amount, category_id, description) -> RecordedTransaction:
        today = self.today()
        balance_before = self.reconstruct_balance(user, today)

        if kind == TransactionType.debit and amount > balance_before:
            logger.info(
                "debit refused for user %s: amount=%s available=%s",
                user.id, amount, balance_before,
            )
            raise InsufficientBalanceError(
                user_id=user.id,
                attempted_at=datetime.now(timezone.utc),
                attempted_amount=amount,
                available_balance=balance_before,
            )

        tx = self.store.insert(
            user_id=user.id,
            kind=kind,
            amount=amount,
            occurred_at=today,
            category_id=category_id,
            description=description,
        )

        if kind == TransactionType.credit:
            balance_after = balance_before + amount
        else:
            balance_after = balance_before - amount

        logger.info(
            "recorded %s %s for user %s (tx %s), balance %s -> %s",
            kind.value, amount, user.id, tx.id, balance_before, balance_after,
        )
        return RecordedTransaction(transaction=tx, balance_after=balance_after)

    # -------------------------------------------------------------------
    # Balance reconstruction
    # -------------------------------------------------------------------

    def reconstruct_balance(self, user: User, as_of: date) -> Decimal:
        """initial_balance plus the signed amounts of every transaction up to `as_of`."""
        balance = Decimal(str(user.initial_balance or 0))
        for tx in self.store.transactions_up_to_date(user.id, as_of):
            balance += tx.signed_amount
        return balance

    def current_balance(self, user: User) -> Decimal:
        return self.reconstruct_balance(user, self.today())

    # -------------------------------------------------------------------
    # Reports
    # -------------------------------------------------------------------

    def daily_closing_series(self, user: User, num_days: int = DEFAULT_REQUESTED_DAYS) -> "OrderedDict[date, Decimal]":
        """Closing balance for each of the last `num_days` days, today first."""
        series: "OrderedDict[date, Decimal]" = OrderedDict()
        for day in dates_back(self.today(), num_days):
            series[day] = self.reconstruct_balance(user, day)
        logger.debug("daily closing series for user %s: %d days", user.id, len(series))
        return series

    def average_balance(self, user: User, num_days: int = DEFAULT_REQUESTED_DAYS) -> Decimal:
        """Mean closing balance over the last `num_days` days."""
        _positive_days("requested_days", num_days)
        series = self.daily_closing_series(user, num_days)
        return sum(series.values(), Decimal("0")) / num_days

    def average_segment_balance(
        self,
        user: User,
        total_n_days: int = DEFAULT_SEGMENT_TOTAL_DAYS,
        first_n_days: int = DEFAULT_SEGMENT_FIRST_DAYS,
        last_n_days: int = DEFAULT_SEGMENT_LAST_DAYS,
    ) -> SegmentAverages:
        """
        Average closing balance of the oldest and the most recent part of a
        `total_n_days` window. See SegmentPairing for how ranges and divisors
        are paired.
        """
        _positive_days("firstNDays", first_n_days)
        _positive_days("lastNDays", last_n_days)

        if self.segment_pairing == SegmentPairing.LEGACY:
            recent_span, oldest_span = first_n_days, last_n_days
        else:
            recent_span, oldest_span = last_n_days, first_n_days

        recent_sum = self._sum_closing(user, 0, recent_span)
        oldest_sum = self._sum_closing(user, total_n_days - oldest_span, total_n_days)

        return SegmentAverages(
            first_segment_average=oldest_sum / first_n_days,
            last_segment_average=recent_sum / last_n_days,
        )

    def _sum_closing(self, user: User, start: int, stop: int) -> Decimal:
        today = self.today()
        total = Decimal("0")
        for offset in range(start, stop):
            total += self.reconstruct_balance(user, days_back(today, offset))
        return total

    def filtered_income_sum(
        self,
        user: User,
        last_n_days: int = DEFAULT_LAST_N_DAYS,
        exclude_category_id: Optional[int] = DEFAULT_EXCLUDED_CATEGORY_ID,
    ) -> Decimal:
        """Credits dated within the last `last_n_days` days, outside one category."""
        ledger_filter = LedgerFilter(
            since=window_start(self.today(), last_n_days),
            exclude_category_id=exclude_category_id,
        )
        return self.store.sum_amount(user.id, TransactionType.credit, ledger_filter)

    def debit_count(self, user: User, last_n_days: int = DEFAULT_LAST_N_DAYS) -> int:
        ledger_filter = LedgerFilter(since=window_start(self.today(), last_n_days))
        return self.store.count_matching(user.id, TransactionType.debit, ledger_filter)

    def income_over_threshold(self, user: User, min_amount=DEFAULT_INCOME_THRESHOLD) -> Decimal:
        """Sum of credits strictly larger than `min_amount`, over all time."""
        ledger_filter = LedgerFilter(amount_greater_than=Decimal(str(min_amount)))
        return self.store.sum_amount(user.id, TransactionType.credit, ledger_filter)

