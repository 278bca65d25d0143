import os

# Must be set before db.py is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import threading
from datetime import date
from decimal import Decimal
from typing import List, Optional

import pytest

from app.config import get_settings
from app.services.balance_engine import BalanceEngine
from app.services.ledger_store import LedgerFilter, LedgerStore
from db import Base, SessionLocal, engine
from models import Transaction, TransactionType, User

get_settings.cache_clear()

TODAY = date(2024, 6, 15)


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session):
    return LedgerStore(db_session)


@pytest.fixture
def clock():
    """Mutable 'today' so tests can move time forward."""
    return {"today": TODAY}


@pytest.fixture
def ledger(store, clock):
    return BalanceEngine(store, today=lambda: clock["today"])


@pytest.fixture
def make_user(store):
    def _make(initial_balance="0", name="alice") -> User:
        return store.create_user(name, Decimal(initial_balance))
    return _make


@pytest.fixture
def add_tx(store):
    """Insert a transaction with an explicit accounting date."""
    def _add(user, kind, amount, on, category_id=None, description=None) -> Transaction:
        return store.insert(
            user_id=user.id,
            kind=TransactionType(kind),
            amount=Decimal(str(amount)),
            occurred_at=on,
            category_id=category_id,
            description=description,
        )
    return _add


class InMemoryLedgerStore:
    """
    Ledger store kept in a list, for engine tests that need to control
    interleaving. When `read_barrier` is set, every balance read waits on it.
    """

    def __init__(self):
        self.rows: List[Transaction] = []
        self.read_barrier: Optional[threading.Barrier] = None
        self._next_id = 1
        self._lock = threading.Lock()

    def insert(self, user_id, kind, amount, occurred_at, category_id=None, description=None):
        with self._lock:
            tx = Transaction(
                id=self._next_id,
                trans_user_id=user_id,
                trans_date=occurred_at,
                trans_amount=amount,
                trans_type=kind,
                category_id=category_id,
                description=description,
            )
            self._next_id += 1
            self.rows.append(tx)
        return tx

    def transactions_up_to_date(self, user_id, as_of):
        with self._lock:
            rows = [tx for tx in self.rows if tx.trans_user_id == user_id and tx.trans_date <= as_of]
        # snapshot first, so every reader sees the ledger as it was before any write
        if self.read_barrier is not None:
            self.read_barrier.wait()
        return sorted(rows, key=lambda tx: (tx.trans_date, tx.id))

    def sum_amount(self, user_id, kind, ledger_filter: LedgerFilter):
        return sum(
            (tx.trans_amount for tx in self._matching(user_id, kind, ledger_filter)),
            Decimal("0"),
        )

    def count_matching(self, user_id, kind, ledger_filter: LedgerFilter):
        return len(self._matching(user_id, kind, ledger_filter))

    def _matching(self, user_id, kind, ledger_filter):
        return [
            tx for tx in self.rows
            if tx.trans_user_id == user_id and tx.trans_type == kind and ledger_filter.matches(tx)
        ]


@pytest.fixture
def memory_store():
    return InMemoryLedgerStore()
