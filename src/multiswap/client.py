"""Swap client facade.

Wires the whole orchestration stack for one chain from Settings. A UI
holds one SwapClient per chain and shares the WalletRegistry between
them.
"""

import logging
from decimal import Decimal
from typing import Callable, Optional, Union

import httpx

from multiswap.backends.factory import create_chain_backend
from multiswap.backends.http import BackendClient
from multiswap.balances.reconciler import BalanceReconciler
from multiswap.balances.service import BalanceService
from multiswap.chains import ChainKind
from multiswap.config import Settings, get_settings
from multiswap.errors import QuoteUnavailable
from multiswap.execution.orchestrator import SwapOrchestrator
from multiswap.execution.preflight import PreflightChecker
from multiswap.execution.session import SwapSession
from multiswap.execution.state_machine import ExecutionStateMachine, SessionListener
from multiswap.pairing.walletconnect import SignClient
from multiswap.pricing.base import PriceFeed
from multiswap.pricing.coingecko import CoinGeckoPriceFeed
from multiswap.quotes.base import Quote, QuoteState
from multiswap.quotes.engine import QuoteEngine, QuoteListener
from multiswap.quotes.slippage import SlippageCalculator
from multiswap.signing.factory import create_signing_router
from multiswap.signing.injected import InjectedProvider
from multiswap.signing.remote import PromptCallback
from multiswap.tokens.base import TokenRef
from multiswap.tokens.catalog import TokenCatalog
from multiswap.wallets.auth import SessionTokenSource
from multiswap.wallets.base import WalletConnection
from multiswap.wallets.registry import WalletRegistry
from multiswap.wallets.resolver import WalletSessionResolver

logger = logging.getLogger(__name__)

BalanceListener = Callable[[dict[TokenRef, Decimal]], None]


class SwapClient:
    """Quote and execute swaps on one chain."""

    def __init__(
        self,
        chain: ChainKind,
        settings: Optional[Settings] = None,
        registry: Optional[WalletRegistry] = None,
        token_source: Optional[SessionTokenSource] = None,
        price_feed: Optional[PriceFeed] = None,
        providers: Optional[dict[ChainKind, InjectedProvider]] = None,
        sign_client: Optional[SignClient] = None,
        on_prompt: Optional[PromptCallback] = None,
        on_quote: Optional[QuoteListener] = None,
        on_session: Optional[SessionListener] = None,
        on_balances: Optional[BalanceListener] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.chain = ChainKind(chain)
        self.settings = settings or get_settings()
        self.registry = registry or WalletRegistry()
        self.on_balances = on_balances

        self.http = BackendClient(settings=self.settings, transport=transport)
        self.backend = create_chain_backend(self.chain, self.http, self.settings)
        backends = {self.chain: self.backend}

        self.price_feed = price_feed or CoinGeckoPriceFeed(self.settings)
        self.catalog = TokenCatalog(self.backend, self.price_feed)
        self.calculator = SlippageCalculator(
            self.backend.config,
            price_feed=self.price_feed,
            fee_percent=self.settings.platform_fee_percent,
        )
        self.quotes = QuoteEngine(
            self.backend,
            self.calculator,
            settings=self.settings,
            token_source=token_source,
            listener=on_quote,
        )

        self.resolver = WalletSessionResolver(self.registry)
        self.router = create_signing_router(
            backends,
            self.http,
            token_source=token_source,
            providers=providers,
            sign_client=sign_client,
            on_prompt=on_prompt,
            settings=self.settings,
        )
        self.balances = BalanceService(backends)
        self.orchestrator = SwapOrchestrator(
            self.resolver,
            self.router,
            PreflightChecker(backends, token_source),
            state_machine=ExecutionStateMachine(on_session),
            registry=self.registry,
            reconciler_factory=self._make_reconciler,
        )

    def _make_reconciler(self, connection: WalletConnection, quote: Quote) -> BalanceReconciler:
        return BalanceReconciler.for_swap(
            self.balances,
            connection.address,
            [quote.from_token, quote.to_token],
            settings=self.settings,
            on_update=self.on_balances,
        )

    @property
    def quote_state(self) -> QuoteState:
        return self.quotes.state

    @property
    def session(self) -> SwapSession:
        return self.orchestrator.session

    async def get_quote(
        self,
        from_token: TokenRef,
        to_token: TokenRef,
        amount: Union[Decimal, str],
        slippage: Optional[Union[Decimal, str]] = None,
    ) -> Optional[Quote]:
        return await self.quotes.get_quote(from_token, to_token, amount, slippage)

    async def execute(self, quote: Optional[Quote] = None) -> SwapSession:
        """Execute ``quote``, or the latest applied quote."""
        quote = quote or self.quotes.current_quote()
        if quote is None:
            raise QuoteUnavailable("No valid quote to execute")
        return await self.orchestrator.execute(quote)

    def cancel(self) -> bool:
        return self.orchestrator.cancel()

    def dismiss(self) -> SwapSession:
        return self.orchestrator.dismiss()

    async def aclose(self) -> None:
        await self.quotes.aclose()
        await self.orchestrator.aclose()
        await self.http.close()

    async def __aenter__(self) -> "SwapClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()
