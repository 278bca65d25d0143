"""Tests for the derived balance reports."""
from datetime import timedelta
from decimal import Decimal

import pytest

from app.errors import DayCountError
from app.services.balance_engine import BalanceEngine, SegmentPairing
from app.services.ledger_store import LedgerFilter
from conftest import TODAY
from models import TransactionType


def days_ago(n):
    return TODAY - timedelta(days=n)


# -------------------------------------------------------------------
# Daily closing series / averages
# -------------------------------------------------------------------

def test_credit_then_debit_scenario(ledger, make_user, clock):
    user = make_user("0")

    clock["today"] = days_ago(1)
    assert ledger.record_transaction(user, "credit", "50").balance_after == Decimal("50")

    clock["today"] = TODAY
    assert ledger.record_transaction(user, "debit", "20").balance_after == Decimal("30")

    series = ledger.daily_closing_series(user, 2)
    assert list(series.items()) == [(TODAY, Decimal("30")), (days_ago(1), Decimal("50"))]


def test_default_series_covers_ninety_days_ending_today(ledger, make_user):
    user = make_user("5")
    series = ledger.daily_closing_series(user)

    assert len(series) == 90
    assert list(series) == [days_ago(i) for i in range(90)]
    assert set(series.values()) == {Decimal("5")}


@pytest.mark.parametrize("num_days", [0, -3])
def test_series_is_empty_for_non_positive_days(ledger, make_user, num_days):
    user = make_user("5")
    assert ledger.daily_closing_series(user, num_days) == {}


def test_series_is_idempotent(ledger, make_user, add_tx):
    user = make_user("5")
    add_tx(user, "credit", "7", days_ago(3))
    assert ledger.daily_closing_series(user, 10) == ledger.daily_closing_series(user, 10)


def test_average_balance(ledger, make_user, add_tx):
    user = make_user("0")
    add_tx(user, "credit", "50", days_ago(1))
    add_tx(user, "debit", "20", TODAY)

    assert ledger.average_balance(user, 2) == Decimal("40")
    # days before the first transaction close at the initial balance
    assert ledger.average_balance(user, 4) == Decimal("20")


@pytest.mark.parametrize("num_days", [0, -1])
def test_average_balance_rejects_non_positive_days(ledger, make_user, num_days):
    user = make_user("0")
    with pytest.raises(DayCountError):
        ledger.average_balance(user, num_days)


# -------------------------------------------------------------------
# Segment averages
# -------------------------------------------------------------------

@pytest.fixture
def segment_user(make_user, add_tx):
    # closing balance: 110 today, 100 for the nine days before, 0 earlier
    user = make_user("0")
    add_tx(user, "credit", "100", days_ago(9))
    add_tx(user, "credit", "10", TODAY)
    return user


def test_segment_legacy_pairing(store, segment_user):
    engine = BalanceEngine(store, today=lambda: TODAY, segment_pairing=SegmentPairing.LEGACY)
    averages = engine.average_segment_balance(segment_user, total_n_days=10, first_n_days=2, last_n_days=4)

    # most recent 2 days (110 + 100) divided by last_n_days
    assert averages.last_segment_average == Decimal("52.5")
    # oldest 4 days of the window (4 * 100) divided by first_n_days
    assert averages.first_segment_average == Decimal("200")


def test_segment_corrected_pairing(store, segment_user):
    engine = BalanceEngine(store, today=lambda: TODAY, segment_pairing="corrected")
    averages = engine.average_segment_balance(segment_user, total_n_days=10, first_n_days=2, last_n_days=4)

    assert averages.last_segment_average == Decimal("102.5")
    assert averages.first_segment_average == Decimal("100")


def test_segment_pairings_agree_for_equal_spans(store, segment_user):
    legacy = BalanceEngine(store, today=lambda: TODAY, segment_pairing=SegmentPairing.LEGACY)
    corrected = BalanceEngine(store, today=lambda: TODAY, segment_pairing=SegmentPairing.CORRECTED)

    assert legacy.average_segment_balance(segment_user, 10, 3, 3) == corrected.average_segment_balance(
        segment_user, 10, 3, 3
    )


def test_segment_defaults(ledger, make_user):
    user = make_user("12")
    averages = ledger.average_segment_balance(user)
    assert averages.first_segment_average == Decimal("12")
    assert averages.last_segment_average == Decimal("12")


@pytest.mark.parametrize("first,last", [(0, 30), (30, 0)])
def test_segment_rejects_zero_divisor(ledger, make_user, first, last):
    user = make_user("12")
    with pytest.raises(DayCountError):
        ledger.average_segment_balance(user, 90, first, last)


# -------------------------------------------------------------------
# Aggregates
# -------------------------------------------------------------------

def test_filtered_income_excludes_sentinel_category(ledger, make_user, add_tx):
    user = make_user("1000")
    add_tx(user, "credit", "10", days_ago(2), category_id=5)
    add_tx(user, "credit", "20", days_ago(3), category_id=18020004)

    assert ledger.filtered_income_sum(user, 30, 18020004) == Decimal("10")
    assert ledger.filtered_income_sum(user) == Decimal("10")


def test_filtered_income_window_and_kinds(ledger, make_user, add_tx):
    user = make_user("0")
    add_tx(user, "credit", "1", days_ago(30))                 # boundary, included
    add_tx(user, "credit", "2", days_ago(31))                 # outside
    add_tx(user, "credit", "4", TODAY)                        # no category, included
    add_tx(user, "debit", "3", TODAY, category_id=5)          # debits never count

    assert ledger.filtered_income_sum(user, 30, 18020004) == Decimal("5")
    assert ledger.filtered_income_sum(user, 31, None) == Decimal("7")


def test_filtered_income_ignores_initial_balance(ledger, make_user):
    assert ledger.filtered_income_sum(make_user("500")) == Decimal("0")


def test_debit_count(ledger, make_user, add_tx):
    user = make_user("1000")
    add_tx(user, "debit", "1", TODAY)
    add_tx(user, "debit", "1", days_ago(30))
    add_tx(user, "debit", "1", days_ago(31))
    add_tx(user, "credit", "1", TODAY)

    assert ledger.debit_count(user) == 2
    assert ledger.debit_count(user, 31) == 3
    assert ledger.debit_count(user, 0) == 1


def test_income_over_threshold_is_strict(ledger, make_user, add_tx):
    user = make_user("1000")
    for amount in ("5", "20", "16", "15"):
        add_tx(user, "credit", amount, days_ago(400))
    add_tx(user, "debit", "100", TODAY)

    assert ledger.income_over_threshold(user) == Decimal("36")
    assert ledger.income_over_threshold(user, 4) == Decimal("56")


def test_aggregate_pushdown_matches_client_side_fold(store, make_user, add_tx):
    user = make_user("0")
    add_tx(user, "credit", "10.10", days_ago(1), category_id=1)
    add_tx(user, "credit", "20.20", days_ago(5), category_id=2)
    add_tx(user, "credit", "30.30", days_ago(12))
    add_tx(user, "credit", "5.05", days_ago(40), category_id=1)
    add_tx(user, "debit", "1.00", days_ago(2), category_id=2)

    rows = store.transactions_up_to_date(user.id, TODAY)
    filters = [
        LedgerFilter(),
        LedgerFilter(since=days_ago(10)),
        LedgerFilter(exclude_category_id=1),
        LedgerFilter(since=days_ago(30), exclude_category_id=2),
        LedgerFilter(amount_greater_than=Decimal("10.10")),
    ]
    for ledger_filter in filters:
        for kind in TransactionType:
            matching = [tx for tx in rows if tx.trans_type == kind and ledger_filter.matches(tx)]
            assert store.sum_amount(user.id, kind, ledger_filter) == sum(
                (tx.trans_amount for tx in matching), Decimal("0")
            )
            assert store.count_matching(user.id, kind, ledger_filter) == len(matching)


def test_reports_are_idempotent(ledger, make_user, add_tx):
    user = make_user("40")
    add_tx(user, "credit", "10", days_ago(40), category_id=5)
    add_tx(user, "credit", "25", days_ago(3))
    add_tx(user, "debit", "12.50", days_ago(1), category_id=18020004)

    reports = [
        lambda: ledger.average_balance(user, 7),
        lambda: ledger.average_segment_balance(user, 20, 5, 5),
        lambda: ledger.filtered_income_sum(user),
        lambda: ledger.debit_count(user),
        lambda: ledger.income_over_threshold(user),
    ]
    for report in reports:
        assert report() == report()
