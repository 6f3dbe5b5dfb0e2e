"""Signing router.

Dispatches a confirmed swap to the signer for the connection's signing
method. Every method returns a SigningResult, so callers never branch on
how the wallet signs.
"""

import logging
from typing import Optional

from multiswap.errors import UnsupportedSigningMethod
from multiswap.quotes.base import Quote
from multiswap.signing.base import ProgressCallback, SigningBackend, SigningResult
from multiswap.wallets.base import SigningMethod, WalletConnection

logger = logging.getLogger(__name__)


class SigningRouter:
    """Routes execution to the embedded, injected or remote signer."""

    def __init__(self, signers: list[SigningBackend]):
        self.signers: dict[SigningMethod, SigningBackend] = {s.method: s for s in signers}

    @property
    def methods(self) -> list[SigningMethod]:
        return list(self.signers)

    async def execute(
        self,
        connection: WalletConnection,
        quote: Quote,
        preflight=None,
        progress: Optional[ProgressCallback] = None,
    ) -> SigningResult:
        """Sign and submit a swap with the given wallet.

        Raises:
            UnsupportedSigningMethod: No signer for the method, or chain mismatch
            SigningRejected, SessionExpired, RemotePairingTimeout,
            BackendExecutionError: From the signer
        """
        if connection.chain != quote.chain:
            raise UnsupportedSigningMethod(
                f"Wallet is on {connection.chain.value}, swap is on {quote.chain.value}"
            )

        signer = self.signers.get(connection.signing_method)
        if signer is None:
            raise UnsupportedSigningMethod(
                f"{connection.signing_method.value} signing is not available"
            )

        logger.info(
            f"Routing {quote.describe()} to {connection.signing_method.value} signer "
            f"({connection.short_address})"
        )
        return await signer.execute(connection, quote, preflight=preflight, progress=progress)

    def cancel(self) -> bool:
        """Abort any pending remote signature wait."""
        return any([signer.cancel() for signer in self.signers.values()])
