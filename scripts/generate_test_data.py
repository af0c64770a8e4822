#!/usr/bin/env python3
"""
Generate realistic demo data for the last 3 months.
Creates a demo user and simulates weekly buys plus a few profit-taking sells.
"""

import random
import sys
import uuid
from datetime import datetime, timedelta
from decimal import Decimal

from investor.app_context import AppContext
from investor.config.settings import Settings
from investor.core.money import to_money
from investor.core.timezone import UTC, now_utc
from investor.domain.models import Operation, TransactionCreate, User
from investor.repositories.sqlalchemy import init_db, unit_of_work
from investor.services.balance_coordinator import MAX_BATCH_SIZE

DEMO_EMAIL = "demo@example.com"
STARTING_CASH = Decimal("50000.00")

# Symbols with approximate prices
STOCKS = [
    ("AAPL", 180.0),
    ("MSFT", 420.0),
    ("GOOGL", 160.0),
    ("AMZN", 150.0),
    ("TSLA", 250.0),
    ("NVDA", 500.0),
    ("META", 350.0),
    ("NFLX", 450.0),
]


def _ensure_user(context: AppContext) -> User:
    with unit_of_work(context.session_factory) as uow:
        existing = uow.users.get_by_email(DEMO_EMAIL)
        if existing:
            print(f"✓ Demo user already exists ({existing.user_id})")
            return existing
        user = uow.users.create(
            User(
                user_id=str(uuid.uuid4()),
                email=DEMO_EMAIL,
                first_name="Demo",
                last_name="Investor",
                cash=STARTING_CASH,
            )
        )
    print(f"✓ Created demo user {user.user_id} with ${STARTING_CASH:,.2f}")
    return user


def _at(day: datetime, hour: int) -> datetime:
    return UTC.localize(datetime(day.year, day.month, day.day, hour, 0))


def build_trades(user_id: str, start: datetime, end: datetime) -> list[TransactionCreate]:
    """Weekly ~$2,000 buys of a random stock, then a few partial sells."""
    trades: list[TransactionCreate] = []
    positions = {symbol: 0 for symbol, _ in STOCKS}
    base_prices = dict(STOCKS)

    monday = start + timedelta(days=(7 - start.weekday()) % 7)
    while monday < end:
        symbol, base_price = random.choice(STOCKS)
        price = to_money(base_price * random.uniform(0.95, 1.05))
        shares = max(1, int(2000 / float(price)))
        trades.append(
            TransactionCreate(
                user_id=user_id,
                operation=Operation.BUY,
                ticker=symbol,
                price=price,
                share_count=shares,
                executed_at=_at(monday, 14),
            )
        )
        positions[symbol] += shares
        monday += timedelta(days=7)

    sell_day = start + timedelta(days=60)
    for symbol, shares in positions.items():
        if shares < 2 or sell_day >= end:
            continue
        price = to_money(base_prices[symbol] * random.uniform(1.05, 1.20))
        trades.append(
            TransactionCreate(
                user_id=user_id,
                operation=Operation.SELL,
                ticker=symbol,
                price=price,
                share_count=shares // 2,
                executed_at=_at(sell_day, 15),
            )
        )
        sell_day += timedelta(days=3)

    trades.sort(key=lambda t: t.executed_at)
    return trades


def generate_realistic_data() -> None:
    """Seed the configured database with a demo user and trades."""
    # Offline demo prices unless Alpaca credentials are configured
    context = AppContext(settings=Settings(use_stub_quotes=True))
    init_db(context.engine)
    user = _ensure_user(context)

    end = now_utc() - timedelta(days=1)
    start = end - timedelta(days=90)
    trades = build_trades(user.user_id, start, end)

    print(f"\nCreating {len(trades)} transactions from {start.date()} to {end.date()}")
    print("=" * 60)

    cash_change = Decimal("0.00")
    for offset in range(0, len(trades), MAX_BATCH_SIZE):
        result = context.ledger.create_batch(user.user_id, trades[offset:offset + MAX_BATCH_SIZE])
        cash_change += result.cash_change
        print(f"  Created {offset + result.count}/{len(trades)}...")

    portfolio = context.portfolio.get_portfolio(user.user_id)

    print("\n" + "=" * 60)
    print("SUMMARY")
    print("=" * 60)
    print(f"User: {DEMO_EMAIL} ({user.user_id})")
    print(f"  Buys: {sum(1 for t in trades if t.operation == Operation.BUY)}")
    print(f"  Sells: {sum(1 for t in trades if t.operation == Operation.SELL)}")
    print(f"  Cash change: ${cash_change:,.2f}")
    print("\nCurrent holdings:")
    for holding in portfolio.holdings:
        print(f"  {holding.ticker}: {holding.total_shares} shares @ avg ${holding.average_price}")
    print(f"\nCash balance: ${portfolio.cash:,.2f}")
    print("\nYou can now:")
    print(f"  - View transactions: GET /transactions  (X-User-Id: {user.user_id})")
    print("  - View portfolio: GET /portfolio")

    context.close()


if __name__ == "__main__":
    try:
        generate_realistic_data()
    except Exception as e:
        print(f"\n✗ Error: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        sys.exit(1)
