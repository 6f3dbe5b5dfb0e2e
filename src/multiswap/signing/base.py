"""Base interfaces for swap signing.

Signing flow:
1. Resolve the wallet connection for the chain
2. Route to the backend for its signing method
3. The method signs (server-side, in the extension or on a phone)
4. Every method returns the same SigningResult
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from multiswap.backends.base import ChainBackend
from multiswap.chains import ChainKind
from multiswap.errors import UnsupportedSigningMethod
from multiswap.quotes.base import Quote
from multiswap.wallets.auth import SessionTokenSource
from multiswap.wallets.base import SigningMethod, WalletConnection

if TYPE_CHECKING:
    from multiswap.execution.preflight import PreflightResult

logger = logging.getLogger(__name__)


class SigningStage(str, Enum):
    """Progress reported by a signer."""

    AWAITING_WALLET = "awaiting_wallet"  # Prompt shown, waiting for the user
    SUBMITTING = "submitting"            # Signature exists, submission started


ProgressCallback = Callable[[SigningStage], None]


@dataclass
class SigningResult:
    """Result of a signed and submitted swap.

    Attributes:
        tx_hash: Transaction hash (signature on Solana)
        method: Signing method that produced it
        wallet_id: Connection that signed
        raw: Backend or wallet response, for diagnostics
    """

    tx_hash: str
    method: SigningMethod
    wallet_id: str
    raw: dict = field(default_factory=dict)
    actual_received: Optional[str] = None


class SigningBackend(ABC):
    """One signing method."""

    method: SigningMethod

    def __init__(
        self,
        backends: dict[ChainKind, ChainBackend],
        token_source: Optional[SessionTokenSource] = None,
    ):
        self.backends = backends
        self.token_source = token_source

    def backend_for(self, chain: ChainKind) -> ChainBackend:
        backend = self.backends.get(chain)
        if backend is None:
            raise UnsupportedSigningMethod(f"No backend configured for {chain.value}")
        return backend

    async def get_token(self) -> Optional[str]:
        return await self.token_source.get_token() if self.token_source else None

    @staticmethod
    def emit(progress: Optional[ProgressCallback], stage: SigningStage) -> None:
        if progress is not None:
            progress(stage)

    @abstractmethod
    async def execute(
        self,
        connection: WalletConnection,
        quote: Quote,
        preflight: Optional["PreflightResult"] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> SigningResult:
        """Sign and submit the swap described by ``quote``.

        Raises:
            SigningRejected: User declined
            SessionExpired: Auth token missing or rejected
            BackendExecutionError: Backend or wallet failure
        """
        pass

    def cancel(self) -> bool:
        """Abort a pending signature wait. Returns True if one was aborted."""
        return False
