"""Balance reads through the swap backend."""

import asyncio
import logging
from decimal import Decimal

from multiswap.backends.base import ChainBackend
from multiswap.chains import ChainKind
from multiswap.tokens.base import TokenRef

logger = logging.getLogger(__name__)


class BalanceService:
    """Per-chain balance lookups."""

    def __init__(self, backends: dict[ChainKind, ChainBackend]):
        self.backends = backends

    async def get_balance(self, address: str, token: TokenRef) -> Decimal:
        """Get one balance.

        Raises:
            ValueError: No backend for the token's chain
            httpx.HTTPError, BackendExecutionError: Read failed
        """
        backend = self.backends.get(token.chain)
        if backend is None:
            raise ValueError(f"No backend configured for {token.chain.value}")
        return await backend.fetch_balance(address, token)

    async def get_balances(self, address: str, tokens: list[TokenRef]) -> dict[TokenRef, Decimal]:
        """Get several balances concurrently; any failure propagates."""
        values = await asyncio.gather(*(self.get_balance(address, t) for t in tokens))
        return dict(zip(tokens, values))
