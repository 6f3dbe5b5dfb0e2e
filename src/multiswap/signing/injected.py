"""Injected (browser extension) signing.

The backend builds the unsigned transaction; the extension signs and
broadcasts it after the user approves in place.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from multiswap.backends.base import ChainBackend
from multiswap.chains import ChainKind
from multiswap.errors import (
    BackendExecutionError,
    SessionExpired,
    SigningRejected,
    UnsupportedSigningMethod,
)
from multiswap.pairing.walletconnect import extract_tx_hash
from multiswap.quotes.base import Quote
from multiswap.signing.base import ProgressCallback, SigningBackend, SigningResult, SigningStage
from multiswap.wallets.auth import SessionTokenSource
from multiswap.wallets.base import SigningMethod, WalletConnection

logger = logging.getLogger(__name__)

# EIP-1193 provider error codes
USER_REJECTED = 4001
UNAUTHORIZED = 4100

# Provider call that signs and broadcasts, per chain
SEND_METHODS = {
    ChainKind.EVM: "eth_sendTransaction",
    ChainKind.SOLANA: "signAndSendTransaction",
    ChainKind.XRPL: "xrpl_signAndSubmit",
}


class ProviderRpcError(Exception):
    """EIP-1193 style provider error."""

    def __init__(self, message: str, code: int):
        self.code = code
        super().__init__(message)


class InjectedProvider(ABC):
    """A wallet extension's request interface (window.ethereum and friends)."""

    @abstractmethod
    async def request(self, method: str, params: Any) -> Any:
        """Send one request to the extension and await the user's answer."""
        pass


class InjectedSigner(SigningBackend):
    """Signs with a browser-injected provider."""

    method = SigningMethod.INJECTED

    def __init__(
        self,
        backends: dict[ChainKind, ChainBackend],
        providers: dict[ChainKind, InjectedProvider],
        token_source: Optional[SessionTokenSource] = None,
    ):
        super().__init__(backends, token_source)
        self.providers = providers

    @staticmethod
    def _params(chain: ChainKind, address: str, transaction: Any) -> Any:
        if chain is ChainKind.EVM:
            tx = dict(transaction or {})
            tx.setdefault("from", address)
            return [tx]
        return {"transaction": transaction}

    async def _send(
        self, provider: InjectedProvider, chain: ChainKind, address: str, transaction: Any
    ) -> str:
        try:
            result = await provider.request(
                SEND_METHODS[chain], self._params(chain, address, transaction)
            )
        except ProviderRpcError as e:
            if e.code == USER_REJECTED:
                raise SigningRejected("Transaction was rejected in the wallet") from e
            if e.code == UNAUTHORIZED:
                raise SessionExpired("Wallet is not authorized. Please reconnect it.") from e
            raise BackendExecutionError(f"Wallet error: {e}") from e

        tx_hash = extract_tx_hash(result)
        if not tx_hash:
            raise BackendExecutionError("Wallet returned no transaction hash")
        return tx_hash

    async def execute(
        self,
        connection: WalletConnection,
        quote: Quote,
        preflight=None,
        progress: Optional[ProgressCallback] = None,
    ) -> SigningResult:
        chain = quote.chain
        provider = self.providers.get(chain)
        if provider is None:
            raise UnsupportedSigningMethod(f"No browser wallet available for {chain.value}")

        backend = self.backend_for(chain)
        descriptor = await backend.prepare_transaction(
            quote, connection.address, connection.wallet_type, token=await self.get_token()
        )

        approval = preflight.approval_transaction if preflight is not None else None
        if approval:
            logger.info(f"Sending token approval from {connection.short_address}")
            approval_hash = await self._send(provider, chain, connection.address, approval)
            logger.info(f"Approval sent: {approval_hash}")

        self.emit(progress, SigningStage.AWAITING_WALLET)
        tx_hash = await self._send(provider, chain, connection.address, descriptor.transaction)
        self.emit(progress, SigningStage.SUBMITTING)

        logger.info(f"Injected swap submitted from {connection.short_address}: {tx_hash}")
        return SigningResult(
            tx_hash=tx_hash,
            method=self.method,
            wallet_id=connection.wallet_id,
            raw={"transaction": descriptor.transaction},
        )
