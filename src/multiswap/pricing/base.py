"""Price feed interface."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from multiswap.tokens.base import TokenRef


class PriceFeed(ABC):
    """Source of USD prices for fee conversion and display."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Feed name."""
        pass

    @abstractmethod
    async def get_usd_price(self, token: TokenRef) -> Optional[Decimal]:
        """Get the USD price of a token, or None when unknown."""
        pass


class StaticPriceFeed(PriceFeed):
    """Fixed prices keyed by symbol. Useful offline and in tests."""

    def __init__(self, prices: dict[str, Decimal]):
        self.prices = {symbol.upper(): Decimal(str(p)) for symbol, p in prices.items()}

    @property
    def name(self) -> str:
        return "Static"

    async def get_usd_price(self, token: TokenRef) -> Optional[Decimal]:
        if token.display_price is not None:
            return token.display_price
        return self.prices.get(token.symbol.upper())
