"""
Unit tests for money helpers, domain models and view math.

Tests cover:
- Money quantization
- Transaction cash deltas
- Pagination math on TransactionPage
- Query cache keys
"""

from decimal import Decimal

import pytest

from investor.core.money import to_money, to_percent
from investor.domain.models import Operation, SortField, SortOrder, Transaction
from investor.domain.views import TransactionPage, TransactionQuery

from tests.conftest import utc_datetime


def _txn(operation: Operation, price: str, shares: int) -> Transaction:
    return Transaction(
        transaction_id="t-1",
        user_id="u-1",
        operation=operation,
        ticker="AAPL",
        price=Decimal(price),
        share_count=shares,
        executed_at=utc_datetime(2024, 1, 15),
    )


# =============================================================================
# MONEY TESTS
# =============================================================================


class TestMoney:
    """Tests for fixed-point money helpers."""

    def test_to_money_rounds_half_up(self):
        assert to_money(Decimal("1.005")) == Decimal("1.01")
        assert to_money("2.344") == Decimal("2.34")

    def test_to_money_converts_floats_through_str(self):
        """
        GIVEN a float with binary representation error
        WHEN it is converted to money
        THEN the decimal value is the one that was written
        """
        assert to_money(0.1 + 0.2) == Decimal("0.30")
        assert to_money(185.5) == Decimal("185.50")

    def test_to_money_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_money("not-a-number")

    def test_to_percent_zero_denominator(self):
        assert to_percent(Decimal("10"), Decimal("0")) == Decimal("0.00")

    def test_to_percent(self):
        assert to_percent(Decimal("240"), Decimal("600")) == Decimal("40.00")


# =============================================================================
# TRANSACTION MODEL TESTS
# =============================================================================


class TestTransactionCashDelta:
    """Tests for Transaction.cash_delta."""

    def test_buy_is_negative(self):
        assert _txn(Operation.BUY, "50.00", 10).cash_delta == Decimal("-500.00")

    def test_sell_is_positive(self):
        assert _txn(Operation.SELL, "60.00", 4).cash_delta == Decimal("240.00")

    def test_string_operation_is_coerced(self):
        txn = _txn("sell", "1.25", 3)
        assert txn.operation == Operation.SELL
        assert txn.total_value == Decimal("3.75")


# =============================================================================
# PAGINATION TESTS
# =============================================================================


class TestTransactionPage:
    """Tests for pagination math."""

    def test_forty_five_items_twenty_per_page(self):
        """
        GIVEN 45 transactions and a page size of 20
        WHEN page 3 is requested
        THEN there are 3 pages, no next page and a previous page
        """
        page = TransactionPage(items=[], total=45, page=3, page_size=20)

        assert page.total_pages == 3
        assert page.has_next is False
        assert page.has_prev is True
        assert page.next_page is None
        assert page.prev_page == 2

    def test_first_page_pointers(self):
        page = TransactionPage(items=[], total=45, page=1, page_size=20)

        assert page.has_next is True
        assert page.has_prev is False
        assert page.next_page == 2
        assert page.prev_page is None

    def test_empty_ledger_has_no_pages(self):
        page = TransactionPage(items=[], total=0, page=1, page_size=20)

        assert page.total_pages == 0
        assert page.has_next is False
        assert page.has_prev is False


class TestTransactionQuery:
    def test_offset(self):
        assert TransactionQuery(page=3, page_size=20).offset == 40

    def test_cache_suffix_distinguishes_variants(self):
        base = TransactionQuery()
        other = TransactionQuery(sort_by=SortField.PRICE, sort_order=SortOrder.ASC)
        filtered = TransactionQuery(ticker="aa")

        assert len({base.cache_suffix(), other.cache_suffix(), filtered.cache_suffix()}) == 3
        assert filtered.cache_suffix().startswith("AA:")
