"""Swap orchestrator.

Runs one confirmed quote through wallet resolution, preflight, signing
and submission, recording every step in the ExecutionStateMachine. After
a success the balances are reconciled in the background.
"""

import asyncio
import logging
from typing import Callable, Optional

from multiswap.balances.reconciler import BalanceReconciler
from multiswap.errors import (
    BackendExecutionError,
    QuoteUnavailable,
    RemotePairingTimeout,
    SigningRejected,
    SwapBusy,
    SwapError,
)
from multiswap.execution.preflight import PreflightChecker
from multiswap.execution.session import SwapSession, SwapStatus
from multiswap.execution.state_machine import ExecutionStateMachine
from multiswap.quotes.base import Quote
from multiswap.signing.base import SigningStage
from multiswap.signing.router import SigningRouter
from multiswap.wallets.base import SigningMethod, WalletConnection
from multiswap.wallets.registry import WalletRegistry
from multiswap.wallets.resolver import WalletSessionResolver

logger = logging.getLogger(__name__)

ReconcilerFactory = Callable[[WalletConnection, Quote], BalanceReconciler]

SIGNING_MESSAGES = {
    SigningMethod.EMBEDDED: "Signing with your session wallet...",
    SigningMethod.INJECTED: "Confirm the swap in your browser wallet...",
    SigningMethod.REMOTE: "Scan the QR code or open your wallet app to sign...",
}


class SwapOrchestrator:
    """Executes confirmed quotes for one chain."""

    def __init__(
        self,
        resolver: WalletSessionResolver,
        router: SigningRouter,
        preflight: PreflightChecker,
        state_machine: Optional[ExecutionStateMachine] = None,
        registry: Optional[WalletRegistry] = None,
        reconciler_factory: Optional[ReconcilerFactory] = None,
    ):
        self.resolver = resolver
        self.router = router
        self.preflight = preflight
        self.machine = state_machine or ExecutionStateMachine()
        self.registry = registry or resolver.registry
        self.reconciler_factory = reconciler_factory
        self.reconciler: Optional[BalanceReconciler] = None

    @property
    def session(self) -> SwapSession:
        return self.machine.session

    def _on_progress(self, stage: SigningStage) -> None:
        if stage is SigningStage.SUBMITTING and self.machine.status is SwapStatus.SIGNING:
            self.machine.mark_submitting()
        elif stage is SigningStage.AWAITING_WALLET and self.machine.status is SwapStatus.SIGNING:
            self.machine.update_message("Waiting for wallet confirmation...")

    async def execute(self, quote: Quote) -> SwapSession:
        """Execute a confirmed quote.

        Wallet selection problems and a busy or stale state are raised
        before the attempt starts. Once started, every failure ends in the
        returned session's error state.

        Raises:
            SwapBusy: A swap is already in progress
            QuoteUnavailable: The quote expired
            NoWalletSelected, AmbiguousWalletSelection: The user must pick a wallet
            InvalidTransition: The previous attempt was not dismissed
        """
        if self.machine.busy:
            raise SwapBusy(self.machine.session)
        if quote.is_expired:
            raise QuoteUnavailable("Quote expired. Refresh the price and try again.")

        connection = self.resolver.resolve(quote.chain)
        self.machine.start(quote)

        try:
            preflight = await self.preflight.run(quote, connection)
            for note in preflight.notes:
                self.machine.update_message(note, note=note)

            self.machine.mark_signing(SIGNING_MESSAGES[connection.signing_method])
            result = await self.router.execute(
                connection, quote, preflight=preflight, progress=self._on_progress
            )
            if self.machine.status is SwapStatus.SIGNING:
                self.machine.mark_submitting()
            self.machine.succeed(result.tx_hash)

        except SwapError as e:
            if isinstance(e, RemotePairingTimeout):
                self.registry.disconnect(connection.wallet_id)
                logger.info(f"Disconnected unresponsive wallet {connection.describe()}")
            self.machine.fail(e)
            return self.machine.session

        except asyncio.CancelledError:
            self.machine.fail(SigningRejected("Swap cancelled"))
            raise

        except Exception as e:
            logger.exception(f"Unexpected swap failure: {e}")
            self.machine.fail(BackendExecutionError(f"Swap failed: {e}"))
            return self.machine.session

        await self._start_reconciler(connection, quote)
        return self.machine.session

    async def _start_reconciler(self, connection: WalletConnection, quote: Quote) -> None:
        if self.reconciler_factory is None:
            return
        if self.reconciler is not None:
            await self.reconciler.cancel()
        self.reconciler = self.reconciler_factory(connection, quote)
        self.reconciler.start()

    def cancel(self) -> bool:
        """Abort a pending remote signature wait."""
        return self.router.cancel()

    def dismiss(self) -> SwapSession:
        return self.machine.dismiss()

    async def aclose(self) -> None:
        self.router.cancel()
        if self.reconciler is not None:
            await self.reconciler.cancel()
            self.reconciler = None
