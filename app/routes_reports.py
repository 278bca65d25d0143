# app/routes_reports.py
"""
Balance report endpoints.

All of them are read-only. Bodies are optional; omitted parameters take the
defaults declared in app/schemas.py.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from app.deps import get_balance_engine, get_current_user
from app.responses import success
from app.schemas import (
    AverageBalanceOut,
    ClosingSeriesOut,
    DailySeriesParams,
    DebitCountOut,
    DebitCountParams,
    IncomeAmountOut,
    IncomeSumOut,
    IncomeThresholdParams,
    IncomeWindowParams,
    SegmentAveragesOut,
    SegmentParams,
)
from app.services.balance_engine import BalanceEngine
from models import User

router = APIRouter()


@router.post("/daily-closing-bal")
def daily_closing_balance(
    params: Optional[DailySeriesParams] = None,
    user: User = Depends(get_current_user),
    engine: BalanceEngine = Depends(get_balance_engine),
):
    params = params or DailySeriesParams()
    series = engine.daily_closing_series(user, params.requested_days)
    body = ClosingSeriesOut(requested_for_days=params.requested_days, closing_balance=series)
    return success(body, f"{params.requested_days} days daily closing balance.")


@router.post("/average-bal")
def average_balance(
    params: Optional[DailySeriesParams] = None,
    user: User = Depends(get_current_user),
    engine: BalanceEngine = Depends(get_balance_engine),
):
    params = params or DailySeriesParams()
    average = engine.average_balance(user, params.requested_days)
    body = AverageBalanceOut(requested_for_days=params.requested_days, average_balance=average)
    return success(body, f"{params.requested_days} days average balance.")


@router.post("/average-segment-bal")
def average_segment_balance(
    params: Optional[SegmentParams] = None,
    user: User = Depends(get_current_user),
    engine: BalanceEngine = Depends(get_balance_engine),
):
    params = params or SegmentParams()
    averages = engine.average_segment_balance(
        user,
        total_n_days=params.total_n_days,
        first_n_days=params.first_n_days,
        last_n_days=params.last_n_days,
    )
    body = SegmentAveragesOut(
        first_n_days=averages.first_segment_average,
        last_n_days=averages.last_segment_average,
    )
    return success(
        body,
        f"First {params.first_n_days} days and last {params.last_n_days} days average closing balance.",
    )


@router.post("/last-n-days-income")
def last_n_days_income(
    params: Optional[IncomeWindowParams] = None,
    user: User = Depends(get_current_user),
    engine: BalanceEngine = Depends(get_balance_engine),
):
    params = params or IncomeWindowParams()
    income = engine.filtered_income_sum(
        user,
        last_n_days=params.last_n_days,
        exclude_category_id=params.except_category_id,
    )
    return success(
        IncomeAmountOut(income_amount=income),
        f"Last {params.last_n_days} days income except category id {params.except_category_id}.",
    )


@router.post("/debit-trans-count")
def debit_transaction_count(
    params: Optional[DebitCountParams] = None,
    user: User = Depends(get_current_user),
    engine: BalanceEngine = Depends(get_balance_engine),
):
    params = params or DebitCountParams()
    count = engine.debit_count(user, last_n_days=params.last_n_days)
    return success(DebitCountOut(debit_count=count), f"Last {params.last_n_days} days debit count.")


@router.post("/income-over-n")
def income_over_n(
    params: Optional[IncomeThresholdParams] = None,
    user: User = Depends(get_current_user),
    engine: BalanceEngine = Depends(get_balance_engine),
):
    params = params or IncomeThresholdParams()
    income = engine.income_over_threshold(user, min_amount=params.min_amount)
    return success(
        IncomeSumOut(income_sum=income),
        f"Sum of income with transaction amount > {params.min_amount}.",
    )
