"""View models for service outputs."""

from investor.domain.views.ledger import TransactionQuery, TransactionPage, BatchResult
from investor.domain.views.portfolio import HoldingView, PortfolioView
from investor.domain.views.feed import FeedStatus

__all__ = [
    "TransactionQuery",
    "TransactionPage",
    "BatchResult",
    "HoldingView",
    "PortfolioView",
    "FeedStatus",
]
