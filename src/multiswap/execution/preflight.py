"""Pre-signing checks (the ``preparing`` step).

- XRPL: liquidity must exist; a missing trustline is created by the swap
- EVM: ERC-20 inputs may need an approval transaction first
- Solana: nothing to check
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from multiswap.backends.base import ChainBackend
from multiswap.backends.evm import EVMBackend
from multiswap.backends.xrpl import XRPLBackend
from multiswap.chains import ChainKind
from multiswap.errors import InsufficientLiquidity
from multiswap.quotes.base import Quote
from multiswap.wallets.auth import SessionTokenSource
from multiswap.wallets.base import WalletConnection

logger = logging.getLogger(__name__)


@dataclass
class PreflightResult:
    """Outcome of the preparing step."""

    notes: list[str] = field(default_factory=list)
    approval_transaction: Optional[dict] = None
    trustline_missing: bool = False


class PreflightChecker:
    """Runs the chain's checks before a swap is signed."""

    def __init__(
        self,
        backends: dict[ChainKind, ChainBackend],
        token_source: Optional[SessionTokenSource] = None,
    ):
        self.backends = backends
        self.token_source = token_source

    async def run(self, quote: Quote, connection: WalletConnection) -> PreflightResult:
        """Check that the swap can go ahead.

        Raises:
            InsufficientLiquidity: XRPL pool cannot fill the swap
            BackendExecutionError: EVM approval check failed
        """
        backend = self.backends.get(quote.chain)
        result = PreflightResult()

        if isinstance(backend, XRPLBackend):
            await self._check_xrpl(backend, quote, connection, result)
        elif isinstance(backend, EVMBackend):
            await self._check_evm(backend, quote, connection, result)

        return result

    async def _check_xrpl(
        self,
        backend: XRPLBackend,
        quote: Quote,
        connection: WalletConnection,
        result: PreflightResult,
    ) -> None:
        liquidity = await backend.check_liquidity(quote)
        if not liquidity.has_liquidity:
            raise InsufficientLiquidity(
                liquidity.message or liquidity.error or "Not enough liquidity available for this swap"
            )

        if quote.to_token.is_native:
            return

        token = await self.token_source.get_token() if self.token_source else None
        trustline = await backend.check_trustline(connection.address, quote.to_token, token)
        if not trustline.success:
            logger.warning(f"Trustline check failed for {quote.to_token}: {trustline.error}")
            result.notes.append(f"Could not verify {quote.to_token.symbol} trustline")
        elif not trustline.has_trustline:
            result.trustline_missing = True
            result.notes.append(f"Setting up trustline for {quote.to_token.symbol}")

    async def _check_evm(
        self,
        backend: EVMBackend,
        quote: Quote,
        connection: WalletConnection,
        result: PreflightResult,
    ) -> None:
        allowance = await backend.check_allowance(quote, connection.address)
        if allowance.approval_needed:
            result.approval_transaction = allowance.approval_transaction
            result.notes.append(f"Approval needed to spend {quote.from_token.symbol}")
