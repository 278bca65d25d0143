# app/deps.py
# Role: Shared FastAPI dependencies.
#       Provides the SQLAlchemy session, the authenticated user for the request,
#       and the Ledger Store / Balance Engine built on top of that session.

"""
Shared dependencies for the ledger API.
"""

from typing import Generator, Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import UnknownUserError
from app.services.balance_engine import BalanceEngine, SegmentPairing
from app.services.ledger_store import LedgerStore
from db import SessionLocal
from models import User

# -------------------------------------------------------------------
# Database dependency
# -------------------------------------------------------------------

def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency that yields a database session and ensures it is closed.

    Typical usage in routes:
        db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# -------------------------------------------------------------------
# Ledger services
# -------------------------------------------------------------------

def get_ledger_store(db: Session = Depends(get_db)) -> LedgerStore:
    return LedgerStore(db)


def get_balance_engine(store: LedgerStore = Depends(get_ledger_store)) -> BalanceEngine:
    settings = get_settings()
    return BalanceEngine(
        store,
        segment_pairing=SegmentPairing(settings.segment_pairing),
        serialize_writes=settings.serialize_ledger_writes,
    )


# -------------------------------------------------------------------
# Identity
# -------------------------------------------------------------------

def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    store: LedgerStore = Depends(get_ledger_store),
) -> User:
    """
    Resolve the authenticated user. Authentication itself happens upstream;
    the gateway forwards the user's id in the X-User-Id header.
    """
    if not x_user_id or not x_user_id.strip().isdigit():
        raise UnknownUserError("Missing or malformed X-User-Id header.")
    user = store.get_user(int(x_user_id))
    if user is None:
        raise UnknownUserError(f"Unknown user {x_user_id}.")
    return user
