"""Remote (mobile wallet) signing.

The backend builds the unsigned transaction descriptor, the user gets a
deep link and QR code, and the signer suspends until the wallet answers,
the user cancels or the timeout elapses. The pairing channel is always
closed afterwards.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from multiswap.backends.base import ChainBackend
from multiswap.chains import ChainKind
from multiswap.contracts import UnsignedTransaction
from multiswap.errors import RemotePairingTimeout, SigningRejected
from multiswap.pairing.base import PairingChannel
from multiswap.pairing.deeplink import DeeplinkQRGenerator, SigningPrompt
from multiswap.quotes.base import Quote
from multiswap.signing.base import ProgressCallback, SigningBackend, SigningResult, SigningStage
from multiswap.wallets.auth import SessionTokenSource
from multiswap.wallets.base import SigningMethod, WalletConnection

logger = logging.getLogger(__name__)

ChannelFactory = Callable[[WalletConnection, UnsignedTransaction], PairingChannel]
PromptCallback = Callable[[SigningPrompt], None]
T = TypeVar("T")


class RemoteSigner(SigningBackend):
    """Signs on a paired mobile wallet."""

    method = SigningMethod.REMOTE

    def __init__(
        self,
        backends: dict[ChainKind, ChainBackend],
        channel_factory: ChannelFactory,
        generator: Optional[DeeplinkQRGenerator] = None,
        timeout_seconds: float = 600.0,
        token_source: Optional[SessionTokenSource] = None,
        on_prompt: Optional[PromptCallback] = None,
    ):
        super().__init__(backends, token_source)
        if timeout_seconds <= 0:
            raise ValueError("Remote signing timeout must be positive")
        self.channel_factory = channel_factory
        self.generator = generator or DeeplinkQRGenerator(expires_in_seconds=timeout_seconds)
        self.timeout_seconds = timeout_seconds
        self.on_prompt = on_prompt
        self._cancel_event: Optional[asyncio.Event] = None

    @property
    def waiting(self) -> bool:
        return self._cancel_event is not None

    def cancel(self) -> bool:
        if self._cancel_event is None:
            return False
        logger.info("Remote signing cancelled by user")
        self._cancel_event.set()
        return True

    def _prompt_for(
        self, uri: Optional[str], descriptor: UnsignedTransaction, wallet_type: str
    ) -> Optional[SigningPrompt]:
        if uri:
            return self.generator.for_walletconnect(uri, wallet_type)
        if descriptor.deeplink or descriptor.uuid:
            return self.generator.for_payload(descriptor, wallet_type)
        # Existing session: the request shows up in the wallet directly
        return None

    async def _until_cancelled(self, awaitable: Awaitable[T], timeout: Optional[float] = None) -> T:
        """Await ``awaitable`` unless the user cancels first.

        Raises:
            SigningRejected: cancel() was called
            asyncio.TimeoutError: ``timeout`` elapsed first
        """
        work = asyncio.ensure_future(awaitable)
        cancelled = asyncio.create_task(self._cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {work, cancelled}, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (work, cancelled):
                if not task.done():
                    task.cancel()
            await asyncio.gather(work, cancelled, return_exceptions=True)

        if work in done:
            return work.result()
        if cancelled in done:
            raise SigningRejected("Signing was cancelled")
        raise asyncio.TimeoutError()

    async def _await_signature(self, channel: PairingChannel) -> str:
        try:
            return await self._until_cancelled(
                channel.wait_for_signature(), timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.warning(f"No wallet response after {self.timeout_seconds}s")
            raise RemotePairingTimeout(
                f"The wallet did not respond within {int(self.timeout_seconds)} seconds"
            ) from None

    async def _round_trip(
        self,
        connection: WalletConnection,
        descriptor: UnsignedTransaction,
        progress: Optional[ProgressCallback],
    ) -> str:
        channel = self.channel_factory(connection, descriptor)
        try:
            uri = await self._until_cancelled(channel.open(connection, descriptor))
            prompt = self._prompt_for(uri, descriptor, connection.wallet_type)
            if prompt is not None and self.on_prompt is not None:
                self.on_prompt(prompt)
            self.emit(progress, SigningStage.AWAITING_WALLET)
            return await self._await_signature(channel)
        finally:
            await channel.close()

    async def execute(
        self,
        connection: WalletConnection,
        quote: Quote,
        preflight=None,
        progress: Optional[ProgressCallback] = None,
    ) -> SigningResult:
        backend = self.backend_for(quote.chain)
        self._cancel_event = asyncio.Event()
        try:
            token = await self._until_cancelled(self.get_token())

            approval = preflight.approval_transaction if preflight is not None else None
            if approval:
                logger.info(f"Requesting token approval from {connection.describe()}")
                await self._round_trip(
                    connection, UnsignedTransaction(success=True, transaction=approval), progress
                )

            descriptor = await self._until_cancelled(
                backend.prepare_transaction(
                    quote, connection.address, connection.wallet_type, token=token
                )
            )
            tx_hash = await self._round_trip(connection, descriptor, progress)
        finally:
            self._cancel_event = None
        self.emit(progress, SigningStage.SUBMITTING)

        logger.info(f"Remote swap signed by {connection.describe()}: {tx_hash}")
        return SigningResult(
            tx_hash=tx_hash,
            method=self.method,
            wallet_id=connection.wallet_id,
            raw={"uuid": descriptor.uuid} if descriptor.uuid else {},
        )
