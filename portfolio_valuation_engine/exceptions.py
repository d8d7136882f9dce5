"""Exception hierarchy for hard failures surfaced by the orchestration layer.

Insufficient data and degenerate arithmetic inside the analytics core are
never raised; they produce zeroed results and warnings instead.
"""


class PortfolioValuationError(Exception):
    """Base class for errors reported to the caller."""


class EmptyPortfolioError(PortfolioValuationError):
    """Analysis was requested for a portfolio without holdings."""


class MissingFXSeriesError(PortfolioValuationError):
    """The FX history needed for currency normalisation could not be fetched."""


class NoUsableSeriesError(PortfolioValuationError):
    """Every requested asset failed to fetch."""

    def __init__(self, symbols):
        self.symbols = list(symbols)
        super().__init__(
            f"No usable price history for any requested asset: {', '.join(self.symbols)}"
        )


class DuplicateHoldingError(PortfolioValuationError):
    """The symbol is already held in the portfolio."""


class UnknownHoldingError(PortfolioValuationError, KeyError):
    """The symbol is not held in the portfolio."""


class SymbolNotFoundError(PortfolioValuationError):
    """A searched symbol returned no price data."""
