"""
Integration tests for BalanceCoordinator.

Tests cover:
- Cash moving together with each ledger write
- Rollback when any part of the unit fails
- Reversal restoring cash exactly
- Batch validation and all-or-nothing writes
- Update cash policies
- Concurrent writers on the same user
"""

import threading
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError

from investor.core.exceptions import AtomicWriteAbortedError, NotFoundError, ValidationError
from investor.core.timezone import now_utc
from investor.domain.models import (
    ComputedHolding,
    Operation,
    TransactionUpdate,
    UpdateCashPolicy,
    User,
)
from investor.repositories.sqlalchemy import (
    Base,
    SqlAlchemyHoldingRepository,
    SqlAlchemyUserRepository,
    build_session_factory,
    unit_of_work,
)
from investor.services import BalanceCoordinator, HoldingsProjection

from tests.conftest import buy, get_cash, sell


def _transaction_count(session_factory, user_id: str) -> int:
    with unit_of_work(session_factory) as uow:
        return len(uow.transactions.list_chronological(user_id))


# =============================================================================
# SINGLE WRITE TESTS
# =============================================================================


class TestApplyTransaction:
    """Tests for BalanceCoordinator.apply_transaction."""

    def test_buy_then_sell_moves_cash(self, coordinator, session_factory, sample_user):
        """
        GIVEN a user with $1,000 cash
        WHEN they buy 10 @ $50 and then sell 4 @ $60
        THEN cash goes 1000 -> 500 -> 740
        """
        coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 10, "50.00"))
        assert get_cash(session_factory, sample_user.user_id) == Decimal("500.00")

        coordinator.apply_transaction(sell(sample_user.user_id, "AAPL", 4, "60.00"))
        assert get_cash(session_factory, sample_user.user_id) == Decimal("740.00")

    def test_ticker_is_normalized(self, coordinator, sample_user):
        created = coordinator.apply_transaction(buy(sample_user.user_id, " aapl ", 1, "10"))

        assert created.ticker == "AAPL"
        assert created.price == Decimal("10.00")

    @pytest.mark.parametrize(
        "field,value,message",
        [
            ("price", Decimal("0"), "Price"),
            ("price", Decimal("-5"), "Price"),
            ("share_count", 0, "Share count"),
            ("ticker", "  ", "Ticker"),
        ],
    )
    def test_invalid_trade_is_rejected(
        self, coordinator, session_factory, sample_user, field, value, message
    ):
        command = buy(sample_user.user_id, "AAPL", 1, "10")
        setattr(command, field, value)

        with pytest.raises(ValidationError) as exc_info:
            coordinator.apply_transaction(command)

        assert message in exc_info.value.message
        assert _transaction_count(session_factory, sample_user.user_id) == 0

    def test_future_execution_time_is_rejected(self, coordinator, sample_user):
        command = buy(sample_user.user_id, "AAPL", 1, "10", executed_at=now_utc() + timedelta(days=1))

        with pytest.raises(ValidationError):
            coordinator.apply_transaction(command)

    def test_unknown_user_writes_nothing(self, coordinator, session_factory):
        with pytest.raises(NotFoundError):
            coordinator.apply_transaction(buy("ghost", "AAPL", 1, "10"))

        assert _transaction_count(session_factory, "ghost") == 0

    def test_write_marks_holding_stale(self, coordinator, session_factory, sample_user):
        """
        GIVEN a fresh AAPL holding row
        WHEN a new AAPL trade is recorded
        THEN the row is stale
        """
        HoldingsProjection(session_factory).sync(
            sample_user.user_id,
            [ComputedHolding("AAPL", 1, Decimal("10.00"), Decimal("10.00"))],
        )

        coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 1, "10"))

        with unit_of_work(session_factory) as uow:
            assert uow.holdings.get(sample_user.user_id, "AAPL").is_stale


# =============================================================================
# FAULT INJECTION TESTS
# =============================================================================


class TestAtomicity:
    """A failure anywhere in the unit leaves no trace."""

    def test_cash_write_failure_rolls_back_ledger_row(
        self, coordinator, session_factory, sample_user, monkeypatch
    ):
        """
        GIVEN the cash update fails with a database error
        WHEN a trade is recorded
        THEN AtomicWriteAbortedError is raised and neither write persists
        """

        def failing_cash_delta(self, user_id, delta):
            raise OperationalError("UPDATE users", {}, Exception("database is locked"))

        monkeypatch.setattr(SqlAlchemyUserRepository, "apply_cash_delta", failing_cash_delta)

        with pytest.raises(AtomicWriteAbortedError):
            coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 1, "100"))

        monkeypatch.undo()
        assert _transaction_count(session_factory, sample_user.user_id) == 0
        assert get_cash(session_factory, sample_user.user_id) == Decimal("1000.00")

    def test_invalidation_failure_rolls_back_cash(
        self, coordinator, session_factory, sample_user, monkeypatch
    ):
        def failing_invalidate(self, user_id, tickers):
            raise RuntimeError("holdings table unavailable")

        monkeypatch.setattr(SqlAlchemyHoldingRepository, "invalidate", failing_invalidate)

        with pytest.raises(RuntimeError):
            coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 1, "100"))

        monkeypatch.undo()
        assert _transaction_count(session_factory, sample_user.user_id) == 0
        assert get_cash(session_factory, sample_user.user_id) == Decimal("1000.00")


# =============================================================================
# REVERSAL TESTS
# =============================================================================


class TestReverseTransaction:
    """Tests for BalanceCoordinator.reverse_transaction."""

    def test_create_then_delete_restores_cash(self, coordinator, session_factory, sample_user):
        bought = coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 3, "33.33"))
        sold = coordinator.apply_transaction(sell(sample_user.user_id, "AAPL", 1, "40.01"))

        coordinator.reverse_transaction(sample_user.user_id, sold.transaction_id)
        coordinator.reverse_transaction(sample_user.user_id, bought.transaction_id)

        assert get_cash(session_factory, sample_user.user_id) == Decimal("1000.00")
        assert _transaction_count(session_factory, sample_user.user_id) == 0

    def test_cannot_delete_another_users_transaction(
        self, coordinator, session_factory, user_factory
    ):
        owner = user_factory()
        intruder = user_factory()
        txn = coordinator.apply_transaction(buy(owner.user_id, "AAPL", 1, "100"))

        with pytest.raises(NotFoundError):
            coordinator.reverse_transaction(intruder.user_id, txn.transaction_id)

        assert get_cash(session_factory, owner.user_id) == Decimal("900.00")
        assert get_cash(session_factory, intruder.user_id) == Decimal("1000.00")


# =============================================================================
# BATCH TESTS
# =============================================================================


class TestApplyBatch:
    """Tests for BalanceCoordinator.apply_batch."""

    def test_batch_applies_summed_cash_change(self, coordinator, session_factory, sample_user):
        result = coordinator.apply_batch(
            sample_user.user_id,
            [
                buy(sample_user.user_id, "AAPL", 2, "100"),
                buy(sample_user.user_id, "MSFT", 1, "50"),
                sell(sample_user.user_id, "AAPL", 1, "120"),
            ],
        )

        assert result.count == 3
        assert result.cash_change == Decimal("-130.00")
        assert get_cash(session_factory, sample_user.user_id) == Decimal("870.00")

    def test_one_invalid_item_rejects_whole_batch(self, coordinator, session_factory, sample_user):
        """
        GIVEN a batch whose second item has zero shares
        WHEN the batch is applied
        THEN nothing is written and the error names the item
        """
        bad = buy(sample_user.user_id, "MSFT", 1, "50")
        bad.share_count = 0

        with pytest.raises(ValidationError) as exc_info:
            coordinator.apply_batch(
                sample_user.user_id,
                [buy(sample_user.user_id, "AAPL", 1, "100"), bad],
            )

        assert exc_info.value.message.startswith("Item 1:")
        assert _transaction_count(session_factory, sample_user.user_id) == 0
        assert get_cash(session_factory, sample_user.user_id) == Decimal("1000.00")

    def test_batch_size_limits(self, coordinator, sample_user):
        with pytest.raises(ValidationError):
            coordinator.apply_batch(sample_user.user_id, [])

        too_many = [buy(sample_user.user_id, "AAPL", 1, "1") for _ in range(11)]
        with pytest.raises(ValidationError):
            coordinator.apply_batch(sample_user.user_id, too_many)

    def test_batch_items_must_belong_to_caller(self, coordinator, sample_user):
        with pytest.raises(ValidationError):
            coordinator.apply_batch(sample_user.user_id, [buy("someone-else", "AAPL", 1, "1")])


# =============================================================================
# UPDATE POLICY TESTS
# =============================================================================


class TestUpdateTransaction:
    """Tests for each update cash policy."""

    def test_reapply_moves_cash_by_difference(self, coordinator, session_factory, sample_user):
        """
        GIVEN a buy of 10 @ $50 (cash 500)
        WHEN the price is corrected to $40
        THEN cash is credited the $100 difference
        """
        txn = coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 10, "50"))

        updated = coordinator.update_transaction(
            sample_user.user_id, txn.transaction_id, TransactionUpdate(price=Decimal("40"))
        )

        assert updated.price == Decimal("40.00")
        assert get_cash(session_factory, sample_user.user_id) == Decimal("600.00")

    def test_reapply_operation_flip(self, coordinator, session_factory, sample_user):
        txn = coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 1, "100"))

        coordinator.update_transaction(
            sample_user.user_id, txn.transaction_id, TransactionUpdate(operation=Operation.SELL)
        )

        assert get_cash(session_factory, sample_user.user_id) == Decimal("1100.00")

    def test_ignore_policy_leaves_cash(self, session_factory, sample_user):
        coordinator = BalanceCoordinator(session_factory, UpdateCashPolicy.IGNORE)
        txn = coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 10, "50"))

        coordinator.update_transaction(
            sample_user.user_id, txn.transaction_id, TransactionUpdate(share_count=20)
        )

        assert get_cash(session_factory, sample_user.user_id) == Decimal("500.00")

    def test_restrict_policy_rejects_cash_fields(self, session_factory, sample_user):
        coordinator = BalanceCoordinator(session_factory, UpdateCashPolicy.RESTRICT)
        txn = coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 10, "50"))

        with pytest.raises(ValidationError):
            coordinator.update_transaction(
                sample_user.user_id, txn.transaction_id, TransactionUpdate(price=Decimal("45"))
            )

        updated = coordinator.update_transaction(
            sample_user.user_id, txn.transaction_id, TransactionUpdate(ticker="msft")
        )
        assert updated.ticker == "MSFT"
        assert get_cash(session_factory, sample_user.user_id) == Decimal("500.00")

    def test_ticker_change_invalidates_both_holdings(
        self, coordinator, session_factory, sample_user
    ):
        txn = coordinator.apply_transaction(buy(sample_user.user_id, "AAPL", 1, "10"))
        HoldingsProjection(session_factory).sync(
            sample_user.user_id,
            [
                ComputedHolding("AAPL", 1, Decimal("10.00"), Decimal("10.00")),
                ComputedHolding("MSFT", 1, Decimal("10.00"), Decimal("10.00")),
            ],
        )

        coordinator.update_transaction(
            sample_user.user_id, txn.transaction_id, TransactionUpdate(ticker="MSFT")
        )

        with unit_of_work(session_factory) as uow:
            rows = uow.holdings.list_for_user(sample_user.user_id)
        assert all(row.is_stale for row in rows)


# =============================================================================
# CONCURRENCY TESTS
# =============================================================================


class TestConcurrentWrites:
    """Concurrent trades for one user must not lose a cash update."""

    def test_two_concurrent_buys_both_apply(self, tmp_path):
        """
        GIVEN a user with $1,000 in a file-backed database
        WHEN two threads each buy 1 @ $100 at the same moment
        THEN cash ends at $800 and both trades exist
        """
        engine = create_engine(
            f"sqlite:///{tmp_path / 'concurrent.db'}",
            connect_args={"check_same_thread": False, "timeout": 30},
        )
        Base.metadata.create_all(bind=engine)
        session_factory = build_session_factory(engine)
        with unit_of_work(session_factory) as uow:
            uow.users.create(
                User(
                    user_id="u-race",
                    email="race@example.com",
                    first_name="Race",
                    last_name="Condition",
                    cash=Decimal("1000.00"),
                )
            )

        coordinator = BalanceCoordinator(session_factory)
        barrier = threading.Barrier(2)
        errors = []

        def worker():
            barrier.wait()
            try:
                coordinator.apply_transaction(buy("u-race", "AAPL", 1, "100"))
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        try:
            assert errors == []
            assert get_cash(session_factory, "u-race") == Decimal("800.00")
            assert _transaction_count(session_factory, "u-race") == 2
        finally:
            engine.dispose()
