"""Smart Investor: ledger, holdings projection and price feed backend."""

__version__ = "0.1.0"
