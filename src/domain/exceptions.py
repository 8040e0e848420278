"""
Domain exceptions for the heat board.

Implements a hierarchy distinguishing between recoverable runtime errors
(feed outages, enrichment lookups failing, unknown symbols) and fatal errors
(configuration problems) that require operator intervention.
"""


class HeatBoardError(Exception):
    """Base class for all heat board domain exceptions."""
    pass


class RecoverableError(HeatBoardError):
    """
    Errors the dashboard recovers from without restarting.

    Background refreshes catch these at their fetch boundary and keep
    showing the last good data until the next scheduled poll.
    """
    pass


class FatalError(HeatBoardError):
    """Critical errors requiring operator intervention."""
    pass


class MarketDataError(RecoverableError):
    """Issues fetching or decoding quote/news API responses."""
    pass


class FeedUnavailableError(RecoverableError):
    """The CSV feed was unreachable or answered with a non-success status."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Feed unavailable ({reason}): {url}")


class EnrichmentError(RecoverableError):
    """News or extended profile lookup for a drill-down failed."""
    pass


class SymbolNotFoundError(RecoverableError):
    """
    A user-requested symbol does not exist at the quote provider.

    Only raised on explicit user actions (search); background lookups
    treat unknown symbols as absent instead.
    """

    def __init__(self, symbol: str):
        self.symbol = symbol
        super().__init__(f"Stock symbol not found: {symbol}")


class ConfigurationError(FatalError):
    """Invalid system configuration."""
    pass
