"""
Errors surfaced to callers of the rebalancing engine.

Only two conditions ever reach the caller: a ticker the metadata store does
not know, and a requested ticker whose allocation makes the final delta
undefined.  Missing indicator data, short histories and zero composite
weights all degrade to neutral scores instead.
"""

from __future__ import annotations


class RebalanceError(ValueError):
    """Base class for fatal rebalancing errors."""


class UnknownTickerError(RebalanceError):
    """Raised when a signal is requested for a ticker with no metadata record.

    Attributes:
        ticker: The requested ticker.
    """

    def __init__(self, ticker: str) -> None:
        self.ticker = ticker
        super().__init__(
            f"No metadata for {ticker} - check the asset metadata table."
        )


class InvalidAllocationError(RebalanceError):
    """Raised when an allocation makes the final delta undefined.

    Attributes:
        ticker: The affected ticker, or ``None`` for portfolio-wide failures.
    """

    def __init__(self, message: str, ticker: str | None = None) -> None:
        self.ticker = ticker
        super().__init__(message)
