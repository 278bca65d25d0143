# routes_transactions.py
"""
Routes for recording transactions and reading the current user's profile.
"""

from fastapi import APIRouter, Depends

from app.deps import get_balance_engine, get_current_user
from app.responses import success
from app.schemas import ProfileOut, RecordedTransactionOut, TransactionCreate, TransactionOut
from app.services.balance_engine import BalanceEngine
from models import User

router = APIRouter()


@router.post("/transaction")
def make_transaction(
    payload: TransactionCreate,
    user: User = Depends(get_current_user),
    engine: BalanceEngine = Depends(get_balance_engine),
):
    """
    Record one credit or debit dated today.

    A debit larger than the available balance is refused (see the
    InsufficientBalanceError handler in main.py).
    """
    recorded = engine.record_transaction(
        user,
        payload.trans_type,
        payload.trans_amount,
        category_id=payload.category_id,
        description=payload.description,
    )
    body = RecordedTransactionOut(
        transaction=TransactionOut.model_validate(recorded.transaction),
        balance_after_transaction=recorded.balance_after,
    )
    return success(body, "The transaction has been completed successfully.")


@router.get("/profile")
def profile(
    user: User = Depends(get_current_user),
    engine: BalanceEngine = Depends(get_balance_engine),
):
    body = ProfileOut(
        id=user.id,
        name=user.name or "",
        initial_balance=user.initial_balance,
        current_balance=engine.current_balance(user),
    )
    return success(body, "Profile loaded.")
