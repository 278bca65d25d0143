# models.py
# Role: SQLAlchemy ORM models for the ledger domain.
#       Defines User (owner of a starting balance) and Transaction
#       (one immutable credit or debit in a user's ledger).

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship

from db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionType(str, enum.Enum):
    credit = "credit"
    debit = "debit"


class User(Base):
    """
    Account holder. Owned by the identity layer; the ledger only reads it.

    `initial_balance` is the balance immediately before the first recorded
    transaction and may be negative.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, default="")
    initial_balance = Column(Numeric(12, 2), nullable=False, default=0)

    transactions = relationship(
        "Transaction",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Transaction(Base):
    """
    ORM model representing one ledger entry.

    Rows are append-only: they are inserted once and never updated or deleted
    by the ledger (only a cascading user delete removes them). `trans_date` is
    the accounting date that decides which day's closing balance the row
    affects; `created_at` is audit only.
    """

    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("trans_amount > 0", name="ck_transactions_amount_positive"),
    )

    # Primary key
    id = Column(Integer, primary_key=True, index=True)

    # Owning user (deleting the user removes the ledger)
    trans_user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Accounting date
    trans_date = Column(Date, nullable=False, index=True)

    # Positive magnitude, two decimal places
    trans_amount = Column(Numeric(10, 2), nullable=False)

    # credit adds to the balance, debit subtracts
    trans_type = Column(
        Enum(TransactionType, name="trans_type", native_enum=False, validate_strings=True),
        nullable=False,
    )

    # Reference to an external category entity
    category_id = Column(Integer, nullable=True)

    # Optional free-text description
    description = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    user = relationship("User", back_populates="transactions")

    @property
    def signed_amount(self):
        """Contribution of this row to the balance."""
        if self.trans_type == TransactionType.credit:
            return self.trans_amount
        return -self.trans_amount
