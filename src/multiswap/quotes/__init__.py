"""Quote acquisition and slippage math."""

from multiswap.quotes.base import FeeBreakdown, Quote, QuoteState
from multiswap.quotes.engine import QuoteEngine
from multiswap.quotes.slippage import SlippageCalculator, derive_minimum_output

__all__ = [
    "FeeBreakdown",
    "Quote",
    "QuoteEngine",
    "QuoteState",
    "SlippageCalculator",
    "derive_minimum_output",
]
