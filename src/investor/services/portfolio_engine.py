"""Portfolio engine: FIFO holdings from the ledger, valuation and risk metrics."""

import logging
from collections import deque
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import sessionmaker

from investor.core.exceptions import NotFoundError, PriceUnavailableError
from investor.core.money import ZERO, to_money, to_percent
from investor.domain.models import ComputedHolding, Holding, Operation, Transaction
from investor.domain.views import HoldingView, PortfolioView
from investor.repositories.sqlalchemy.unit_of_work import unit_of_work
from investor.services.holdings_projection import HoldingsProjection
from investor.services.ledger_service import LedgerService
from investor.services.price_feed import PriceFeedClient

logger = logging.getLogger(__name__)

RECOMPUTE_ATTEMPTS = 3


@dataclass
class _Lot:
    shares: int
    price: Decimal


class PortfolioEngine:
    """
    Engine for computing portfolio state from the ledger.

    The holdings projection is served as stored while every row is fresh.
    If it is empty or any row is stale, the whole ledger is replayed, the
    projection is rewritten and then served. The check is all-or-nothing
    per request.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        ledger: LedgerService,
        projection: HoldingsProjection,
        price_feed: Optional[PriceFeedClient] = None,
    ):
        self._session_factory = session_factory
        self._ledger = ledger
        self._projection = projection
        self._price_feed = price_feed

    @staticmethod
    def compute_holdings(transactions: list[Transaction]) -> list[ComputedHolding]:
        """
        Replay trades with FIFO lot matching.

        Sells consume the oldest buy lots first and remove their cost from
        ``total_spent``. Overselling consumes what exists; tickers left
        with no shares are dropped from the result.
        """
        ordered = sorted(
            transactions,
            key=lambda t: (t.executed_at, t.created_at or t.executed_at),
        )

        lots: dict[str, deque[_Lot]] = {}
        shares: dict[str, int] = {}
        spent: dict[str, Decimal] = {}

        for txn in ordered:
            queue = lots.setdefault(txn.ticker, deque())
            shares.setdefault(txn.ticker, 0)
            spent.setdefault(txn.ticker, ZERO)

            if txn.operation == Operation.BUY:
                queue.append(_Lot(shares=txn.share_count, price=txn.price))
                shares[txn.ticker] += txn.share_count
                spent[txn.ticker] += txn.price * txn.share_count
                continue

            remaining = txn.share_count
            cost_basis_removed = ZERO
            while remaining > 0 and queue:
                lot = queue[0]
                taken = min(remaining, lot.shares)
                cost_basis_removed += taken * lot.price
                lot.shares -= taken
                remaining -= taken
                if lot.shares == 0:
                    queue.popleft()
            shares[txn.ticker] -= txn.share_count
            spent[txn.ticker] -= cost_basis_removed

        computed = []
        for ticker in sorted(shares):
            total_shares = shares[ticker]
            if total_shares <= 0:
                continue
            total_spent = to_money(spent[ticker])
            computed.append(
                ComputedHolding(
                    ticker=ticker,
                    total_shares=total_shares,
                    average_price=to_money(total_spent / total_shares),
                    total_spent=total_spent,
                )
            )
        return computed

    def get_portfolio(self, user_id: str) -> PortfolioView:
        """Portfolio view, recomputing the projection first if it is stale."""
        cash = self._get_cash(user_id)
        rows = self._projection.get(user_id)

        if not rows or any(row.is_stale for row in rows):
            stale_count = sum(1 for row in rows if row.is_stale)
            logger.info(
                f"Recomputing holdings for user {user_id} "
                f"({len(rows)} rows, {stale_count} stale)"
            )
            rows, price_stale = self._recompute(user_id, rows)
            recomputed = True
        else:
            rows, price_stale = self._overlay_cached_prices(rows)
            recomputed = False

        return self._build_view(rows, price_stale, cash, recomputed)

    def _recompute(self, user_id: str, previous: list[Holding]) -> tuple[list[Holding], set[str]]:
        previous_prices = {row.ticker: row.last_price for row in previous}

        for attempt in range(1, RECOMPUTE_ATTEMPTS + 1):
            generation = self._projection.generation(user_id)
            transactions = self._ledger.get_all_unpaginated(user_id)
            computed = self.compute_holdings(transactions)
            price_stale = self._value(computed, previous_prices)

            rows = self._projection.sync(user_id, computed, complete=True, generation=generation)
            if rows is not None:
                return rows, price_stale
            logger.info(
                f"Ledger for user {user_id} changed during recompute "
                f"(attempt {attempt}/{RECOMPUTE_ATTEMPTS})"
            )

        # Serve the latest snapshot unsynced; the stored rows stay stale
        return self._unsynced_rows(user_id, computed, previous), price_stale

    def _value(
        self, computed: list[ComputedHolding], previous_prices: dict[str, Optional[Decimal]]
    ) -> set[str]:
        price_stale: set[str] = set()
        for entry in computed:
            price = self._fetch_price(entry.ticker)
            if price is None:
                price = previous_prices.get(entry.ticker)
                price_stale.add(entry.ticker)
            entry.last_price = price
            entry.total_value = to_money(price * entry.total_shares) if price is not None else None
        return price_stale

    @staticmethod
    def _unsynced_rows(
        user_id: str, computed: list[ComputedHolding], previous: list[Holding]
    ) -> list[Holding]:
        annotations = {row.ticker: row for row in previous}
        rows = []
        for entry in computed:
            prior = annotations.get(entry.ticker)
            rows.append(
                Holding(
                    user_id=user_id,
                    ticker=entry.ticker,
                    total_shares=entry.total_shares,
                    average_price=entry.average_price,
                    total_spent=entry.total_spent,
                    total_value=entry.total_value,
                    last_price=entry.last_price,
                    stop_loss=prior.stop_loss if prior else ZERO,
                    entry_reason=prior.entry_reason if prior else "",
                )
            )
        return rows

    def _overlay_cached_prices(self, rows: list[Holding]) -> tuple[list[Holding], set[str]]:
        price_stale: set[str] = set()
        for row in rows:
            if row.total_shares <= 0:
                continue
            live = self._price_feed.get_price(row.ticker) if self._price_feed else None
            if live is None:
                price_stale.add(row.ticker)
                continue
            row.last_price = live
            row.total_value = to_money(live * row.total_shares)
        return rows, price_stale

    def _fetch_price(self, ticker: str) -> Optional[Decimal]:
        if self._price_feed is None:
            return None
        try:
            return self._price_feed.fetch_price(ticker)
        except PriceUnavailableError as e:
            logger.warning(f"Valuing {ticker} without a fresh price: {e.message}")
            return None

    def _get_cash(self, user_id: str) -> Decimal:
        with unit_of_work(self._session_factory) as uow:
            user = uow.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user.cash

    @staticmethod
    def _build_view(
        rows: list[Holding],
        price_stale: set[str],
        cash: Decimal,
        recomputed: bool,
    ) -> PortfolioView:
        open_rows = [row for row in rows if row.total_shares > 0]

        portfolio_value = sum(
            (row.total_value for row in open_rows if row.total_value is not None), ZERO
        )
        total_spent = sum((row.total_spent for row in open_rows), ZERO)
        priced_spent = sum(
            (row.total_spent for row in open_rows if row.total_value is not None), ZERO
        )

        holdings = []
        for row in open_rows:
            value = row.total_value
            if value is not None:
                pl = to_money(value - row.total_spent)
                pl_percent = to_percent(pl, row.total_spent)
            else:
                pl = None
                pl_percent = None

            risk_dollar = ZERO
            if row.stop_loss > 0 and value is not None:
                risk_dollar = to_money(max(ZERO, value - row.stop_loss * row.total_shares))

            holdings.append(
                HoldingView(
                    ticker=row.ticker,
                    total_shares=row.total_shares,
                    average_price=row.average_price,
                    total_spent=row.total_spent,
                    last_price=row.last_price,
                    total_value=value,
                    unrealized_pl=pl,
                    unrealized_pl_percent=pl_percent,
                    stop_loss=row.stop_loss,
                    entry_reason=row.entry_reason,
                    risk_dollar=risk_dollar,
                    risk_percent=to_percent(risk_dollar, portfolio_value),
                    total_percent=to_percent(value or ZERO, portfolio_value),
                    price_stale=row.ticker in price_stale,
                    last_synced_at=row.last_synced_at,
                )
            )

        unrealized_pl = to_money(portfolio_value - priced_spent)
        synced = [row.last_synced_at for row in rows if row.last_synced_at is not None]

        return PortfolioView(
            holdings=holdings,
            total_spent=to_money(total_spent),
            total_value=to_money(portfolio_value),
            unrealized_pl=unrealized_pl,
            unrealized_pl_percent=to_percent(unrealized_pl, priced_spent),
            cash=cash,
            synced_at=max(synced) if synced else None,
            recomputed=recomputed,
            prices_complete=all(row.total_value is not None for row in open_rows),
        )
