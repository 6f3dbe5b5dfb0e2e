"""Embedded (custodial session) signing.

The backend holds the session wallet's key; the swap is one authenticated
execute call.
"""

import logging
from typing import Optional

from multiswap.errors import SessionExpired
from multiswap.quotes.base import Quote
from multiswap.signing.base import ProgressCallback, SigningBackend, SigningResult, SigningStage
from multiswap.wallets.base import SigningMethod, WalletConnection

logger = logging.getLogger(__name__)


class EmbeddedSigner(SigningBackend):
    """Signs through the backend's execute endpoint with the session token."""

    method = SigningMethod.EMBEDDED

    async def execute(
        self,
        connection: WalletConnection,
        quote: Quote,
        preflight=None,
        progress: Optional[ProgressCallback] = None,
    ) -> SigningResult:
        token = await self.get_token()
        if not token:
            raise SessionExpired()

        backend = self.backend_for(quote.chain)
        # Signing and submission happen in the same server call
        self.emit(progress, SigningStage.SUBMITTING)
        result = await backend.execute(quote, connection.address, token)

        logger.info(f"Embedded swap submitted for {connection.short_address}: {result.tx_hash}")
        return SigningResult(
            tx_hash=result.tx_hash,
            method=self.method,
            wallet_id=connection.wallet_id,
            raw=result.model_dump(),
            actual_received=result.actual_received,
        )
