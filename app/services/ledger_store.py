# app/services/ledger_store.py
"""
Ledger Store: durable, append-only storage of a user's transactions.

The store only knows how to insert rows and answer range/aggregate queries
scoped by user. Everything that interprets those rows as a balance lives in
balance_engine.py.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.errors import PersistenceError
from models import Transaction, TransactionType, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerFilter:
    """
    Predicates for aggregate queries. Unset fields do not filter.

    since:               trans_date >= since
    exclude_category_id: category_id != value (rows without a category are kept)
    amount_greater_than: trans_amount > value
    """

    since: Optional[date] = None
    exclude_category_id: Optional[int] = None
    amount_greater_than: Optional[Decimal] = None

    def matches(self, tx: Transaction) -> bool:
        if self.since is not None and tx.trans_date < self.since:
            return False
        if self.exclude_category_id is not None and tx.category_id == self.exclude_category_id:
            return False
        if self.amount_greater_than is not None and not tx.trans_amount > self.amount_greater_than:
            return False
        return True


class LedgerStore:
    def __init__(self, db: Session):
        self.db = db

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------

    def insert(
        self,
        user_id: int,
        kind: TransactionType,
        amount: Decimal,
        occurred_at: date,
        category_id: Optional[int] = None,
        description: Optional[str] = None,
    ) -> Transaction:
        """
        Persist one transaction and return it with `id` and `created_at` set.
        On any storage failure the session is rolled back and nothing is kept.
        """
        tx = Transaction(
            trans_user_id=user_id,
            trans_date=occurred_at,
            trans_amount=amount,
            trans_type=kind,
            category_id=category_id,
            description=description,
        )
        try:
            self.db.add(tx)
            self.db.commit()
            self.db.refresh(tx)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("insert failed for user %s: %r", user_id, e)
            raise PersistenceError("The transaction could not be stored.") from e
        return tx

    def insert_many(self, rows: List[Transaction]) -> int:
        """Insert prepared rows in a single commit (all or nothing)."""
        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("bulk insert of %d rows failed: %r", len(rows), e)
            raise PersistenceError("The transactions could not be stored.") from e
        return len(rows)

    def create_user(self, name: str, initial_balance: Decimal) -> User:
        user = User(name=name, initial_balance=initial_balance)
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError("The user could not be stored.") from e
        return user

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------

    def get_user(self, user_id: int) -> Optional[User]:
        try:
            return self.db.get(User, user_id)
        except SQLAlchemyError as e:
            raise PersistenceError("The user could not be loaded.") from e

    def transactions_up_to_date(self, user_id: int, as_of: date) -> List[Transaction]:
        """All of the user's transactions with trans_date <= as_of, oldest first."""
        try:
            return (
                self.db.query(Transaction)
                .filter(
                    Transaction.trans_user_id == user_id,
                    Transaction.trans_date <= as_of,
                )
                .order_by(Transaction.trans_date.asc(), Transaction.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceError("The ledger could not be read.") from e

    def sum_amount(self, user_id: int, kind: TransactionType, ledger_filter: LedgerFilter) -> Decimal:
        """SUM(trans_amount) over matching rows; 0 when none match."""
        try:
            query = self.db.query(func.coalesce(func.sum(Transaction.trans_amount), 0))
            total = self._apply(query, user_id, kind, ledger_filter).scalar()
        except SQLAlchemyError as e:
            raise PersistenceError("The ledger could not be read.") from e
        return Decimal(str(total or 0)).quantize(Decimal("0.01"))

    def count_matching(self, user_id: int, kind: TransactionType, ledger_filter: LedgerFilter) -> int:
        try:
            query = self.db.query(func.count(Transaction.id))
            count = self._apply(query, user_id, kind, ledger_filter).scalar()
        except SQLAlchemyError as e:
            raise PersistenceError("The ledger could not be read.") from e
        return int(count or 0)

    @staticmethod
    def _apply(query, user_id: int, kind: TransactionType, ledger_filter: LedgerFilter):
        query = query.filter(
            Transaction.trans_user_id == user_id,
            Transaction.trans_type == kind,
        )
        if ledger_filter.since is not None:
            query = query.filter(Transaction.trans_date >= ledger_filter.since)
        if ledger_filter.exclude_category_id is not None:
            # SQL '!=' drops NULLs; keep uncategorized rows explicitly
            query = query.filter(
                or_(
                    Transaction.category_id.is_(None),
                    Transaction.category_id != ledger_filter.exclude_category_id,
                )
            )
        if ledger_filter.amount_greater_than is not None:
            query = query.filter(Transaction.trans_amount > ledger_filter.amount_greater_than)
        return query
