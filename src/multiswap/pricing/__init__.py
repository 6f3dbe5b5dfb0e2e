"""USD price feeds."""

from multiswap.pricing.base import PriceFeed, StaticPriceFeed
from multiswap.pricing.coingecko import CoinGeckoPriceFeed

__all__ = ["CoinGeckoPriceFeed", "PriceFeed", "StaticPriceFeed"]
