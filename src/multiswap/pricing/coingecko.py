"""CoinGecko price feed.

Native assets are looked up by CoinGecko id, EVM and Solana tokens by
contract/mint address. Prices are cached for ``price_cache_seconds``.
"""

import logging
import time
from decimal import Decimal
from typing import Optional

import httpx

from multiswap.chains import ChainKind, get_chain_config
from multiswap.config import Settings, get_settings
from multiswap.pricing.base import PriceFeed
from multiswap.tokens.base import TokenRef

logger = logging.getLogger(__name__)

# CoinGecko asset platform per chain family (token_price endpoint)
ASSET_PLATFORMS = {
    ChainKind.EVM: "ethereum",
    ChainKind.SOLANA: "solana",
}

STABLECOINS = {"USDT", "USDC", "DAI", "RLUSD"}


class CoinGeckoPriceFeed(PriceFeed):
    """USD prices from the CoinGecko simple price API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.coingecko_api_url.rstrip("/")
        self.cache_seconds = self.settings.price_cache_seconds
        self._transport = transport
        self._cache: dict[tuple, tuple[Decimal, float]] = {}

    @property
    def name(self) -> str:
        return "CoinGecko"

    def _get_headers(self) -> dict:
        headers = {"Accept": "application/json"}
        if self.settings.coingecko_api_key:
            headers["x-cg-demo-api-key"] = self.settings.coingecko_api_key
        return headers

    def _cached(self, key: tuple) -> Optional[Decimal]:
        entry = self._cache.get(key)
        if entry and time.time() - entry[1] < self.cache_seconds:
            return entry[0]
        return None

    async def get_usd_price(self, token: TokenRef) -> Optional[Decimal]:
        """Get the USD price of a token.

        The token's own display price wins; failures return None.
        """
        if token.display_price is not None:
            return token.display_price
        if token.symbol.upper() in STABLECOINS and not token.is_native:
            return Decimal("1.0")

        key = token.key
        cached = self._cached(key)
        if cached is not None:
            return cached

        if token.is_native:
            coingecko_id = get_chain_config(token.chain, self.settings).coingecko_id
            price = await self._fetch(
                "/simple/price", {"ids": coingecko_id, "vs_currencies": "usd"}, coingecko_id
            )
        else:
            platform = ASSET_PLATFORMS.get(token.chain)
            if not platform:
                return None
            address = token.issuer_or_address
            price = await self._fetch(
                f"/simple/token_price/{platform}",
                {"contract_addresses": address, "vs_currencies": "usd"},
                address.lower() if token.chain is ChainKind.EVM else address,
            )

        if price is not None:
            self._cache[key] = (price, time.time())
        return price

    async def _fetch(self, path: str, params: dict, result_key: str) -> Optional[Decimal]:
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
                response = await client.get(
                    f"{self.base_url}{path}", params=params, headers=self._get_headers()
                )

                if response.status_code == 200:
                    data = response.json()
                    price = data.get(result_key, {}).get("usd")
                    if price:
                        return Decimal(str(price))
                else:
                    logger.warning(f"CoinGecko returned {response.status_code} for {result_key}")

        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"CoinGecko price fetch failed: {e}")

        return None
