# app/schemas.py
"""
Request and response models for the ledger API.

Every report parameter is optional on the wire; the defaults below apply
when a field is omitted or null, or when the body is empty. Field names keep
the public API's historical spelling through aliases.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.config import (
    DEFAULT_EXCLUDED_CATEGORY_ID,
    DEFAULT_INCOME_THRESHOLD,
    DEFAULT_LAST_N_DAYS,
    DEFAULT_REQUESTED_DAYS,
    DEFAULT_SEGMENT_FIRST_DAYS,
    DEFAULT_SEGMENT_LAST_DAYS,
    DEFAULT_SEGMENT_TOTAL_DAYS,
)
from models import TransactionType


class _Params(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def null_means_default(cls, data):
        # an explicit null is treated like an omitted field
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


# -------------------------------------------------------------------
# Requests
# -------------------------------------------------------------------

class TransactionCreate(BaseModel):
    trans_amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    trans_type: TransactionType
    category_id: Optional[int] = None
    description: Optional[str] = Field(default=None, max_length=255)


class DailySeriesParams(_Params):
    requested_days: int = DEFAULT_REQUESTED_DAYS


class SegmentParams(_Params):
    total_n_days: int = Field(default=DEFAULT_SEGMENT_TOTAL_DAYS, alias="totalNDays")
    first_n_days: int = Field(default=DEFAULT_SEGMENT_FIRST_DAYS, alias="firstNDays")
    last_n_days: int = Field(default=DEFAULT_SEGMENT_LAST_DAYS, alias="lastNDays")


class IncomeWindowParams(_Params):
    last_n_days: int = Field(default=DEFAULT_LAST_N_DAYS, alias="lastNDays")
    except_category_id: int = Field(default=DEFAULT_EXCLUDED_CATEGORY_ID, alias="exceptCatID")


class DebitCountParams(_Params):
    last_n_days: int = Field(default=DEFAULT_LAST_N_DAYS, alias="lastNDays")


class IncomeThresholdParams(_Params):
    min_amount: Decimal = Field(default=DEFAULT_INCOME_THRESHOLD, alias="transAmtGreaterThan")


# -------------------------------------------------------------------
# Responses
# -------------------------------------------------------------------

class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trans_user_id: int
    trans_date: date
    trans_amount: Decimal
    trans_type: TransactionType
    category_id: Optional[int] = None
    description: Optional[str] = None
    created_at: datetime


class RecordedTransactionOut(BaseModel):
    transaction: TransactionOut
    balance_after_transaction: Decimal


class ClosingSeriesOut(BaseModel):
    requested_for_days: int
    closing_balance: Dict[date, Decimal]


class AverageBalanceOut(BaseModel):
    requested_for_days: int
    average_balance: Decimal


class SegmentAveragesOut(BaseModel):
    first_n_days: Decimal
    last_n_days: Decimal


class ProfileOut(BaseModel):
    id: int
    name: str
    initial_balance: Decimal
    current_balance: Decimal


class IncomeAmountOut(BaseModel):
    income_amount: Decimal


class DebitCountOut(BaseModel):
    debit_count: int


class IncomeSumOut(BaseModel):
    income_sum: Decimal
