"""Token catalog.

Resolves chain-scoped token references (symbol + issuer/contract) to
TokenRefs carrying decimals and a display price. Resolved tokens are cached
for the lifetime of the catalog.
"""

import logging
from decimal import Decimal
from typing import Optional

from multiswap.backends.base import ChainBackend
from multiswap.chains import ChainConfig
from multiswap.contracts import TokenInfo
from multiswap.errors import TokenNotFound
from multiswap.pricing.base import PriceFeed
from multiswap.tokens.base import TokenRef

logger = logging.getLogger(__name__)

# XRPL issued currencies are quoted with 6 decimals in the UI
DEFAULT_DECIMALS = 6


class TokenCatalog:
    """Per-chain token lookup backed by the swap backend's token endpoints."""

    def __init__(self, backend: ChainBackend, price_feed: Optional[PriceFeed] = None):
        self.backend = backend
        self.config: ChainConfig = backend.config
        self.price_feed = price_feed
        self._cache: dict[tuple[str, str, str], TokenRef] = {}

    @property
    def chain(self):
        return self.config.kind

    def native(self) -> TokenRef:
        """The chain's native asset (XRP, ETH, SOL)."""
        return TokenRef(
            symbol=self.config.native_symbol,
            chain=self.chain,
            issuer_or_address="",
            decimals=self.config.native_decimals,
            name=self.config.name,
        )

    def _from_info(self, info: TokenInfo, decimals: Optional[int] = None) -> TokenRef:
        return TokenRef(
            symbol=info.symbol,
            chain=self.chain,
            issuer_or_address=info.issuer,
            decimals=decimals if decimals is not None else (info.decimals or DEFAULT_DECIMALS),
            display_price=info.price_usd,
            name=info.name,
        )

    async def _lookup(self, symbol: str, issuer_or_address: str) -> Optional[TokenInfo]:
        if issuer_or_address:
            info = await self.backend.token_info(issuer_or_address)
            if info is not None:
                return info

        needle = issuer_or_address.lower()
        for info in await self.backend.search_tokens(symbol):
            if info.symbol.upper() != symbol.upper():
                continue
            if not needle or info.issuer.lower() == needle:
                return info
        return None

    async def resolve(
        self,
        symbol: str,
        issuer_or_address: str = "",
        decimals: Optional[int] = None,
    ) -> TokenRef:
        """Resolve a token reference.

        Args:
            symbol: Token symbol
            issuer_or_address: XRPL issuer, EVM contract or Solana mint ("" = native)
            decimals: Known decimals; skips the lookup when given with an address

        Raises:
            TokenNotFound: The backend does not know the token
        """
        if not issuer_or_address and (
            symbol.upper() == self.config.native_symbol or not symbol
        ):
            token = self.native()
        else:
            key = (self.chain.value, issuer_or_address, symbol)
            if key in self._cache:
                return self._cache[key]

            if issuer_or_address and decimals is not None:
                token = TokenRef(
                    symbol=symbol,
                    chain=self.chain,
                    issuer_or_address=issuer_or_address,
                    decimals=decimals,
                )
            else:
                info = await self._lookup(symbol, issuer_or_address)
                if info is None:
                    raise TokenNotFound(f"Token {symbol} not found on {self.config.name}")
                token = self._from_info(info, decimals)

        if token.display_price is None and self.price_feed is not None:
            token = token.with_price(await self.price_feed.get_usd_price(token))

        self._cache[token.key] = token
        logger.debug(f"Resolved {token} (decimals={token.decimals}, price={token.display_price})")
        return token

    async def search(self, query: str) -> list[TokenRef]:
        """Search tokens by symbol or name."""
        results = await self.backend.search_tokens(query)
        return [self._from_info(info) for info in results]

    async def refresh_price(self, token: TokenRef) -> TokenRef:
        """Return the token with a fresh display price."""
        if self.price_feed is None:
            return token
        price: Optional[Decimal] = await self.price_feed.get_usd_price(token.with_price(None))
        refreshed = token.with_price(price)
        self._cache[token.key] = refreshed
        return refreshed
