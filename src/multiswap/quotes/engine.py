"""Quote engine.

Every request gets a monotonically increasing sequence number. A request
waits out the debounce window first and is never sent if a newer one
arrived meanwhile; a response is applied only if its sequence is still the
latest. Superseded results are dropped, never applied out of order.
"""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING, Callable, Optional, Union

from pydantic import ValidationError

from multiswap.config import Settings, get_settings
from multiswap.contracts import QuoteRequest
from multiswap.errors import QuoteUnavailable, SwapError
from multiswap.quotes.base import Quote, QuoteState
from multiswap.quotes.slippage import SlippageCalculator
from multiswap.tokens.base import TokenRef

if TYPE_CHECKING:
    from multiswap.backends.base import ChainBackend
    from multiswap.wallets.auth import SessionTokenSource

logger = logging.getLogger(__name__)

QuoteListener = Callable[[QuoteState], None]


class QuoteEngine:
    """Debounced, sequence-gated quote acquisition for one chain."""

    def __init__(
        self,
        backend: "ChainBackend",
        calculator: SlippageCalculator,
        settings: Optional[Settings] = None,
        token_source: Optional["SessionTokenSource"] = None,
        debounce_seconds: Optional[float] = None,
        listener: Optional[QuoteListener] = None,
    ):
        self.backend = backend
        self.calculator = calculator
        self.settings = settings or get_settings()
        self.token_source = token_source
        self.debounce_seconds = (
            debounce_seconds if debounce_seconds is not None else backend.config.debounce_seconds
        )
        self.listener = listener
        self._sequence = 0
        self._state = QuoteState()
        self._tasks: set[asyncio.Task] = set()

    @property
    def state(self) -> QuoteState:
        return self._state

    @property
    def latest_sequence(self) -> int:
        return self._sequence

    @property
    def default_slippage(self) -> Decimal:
        return self.backend.config.default_slippage

    def _next_sequence(self) -> int:
        self._sequence += 1
        return self._sequence

    def _is_current(self, sequence: int) -> bool:
        return sequence == self._sequence

    def _publish(self, state: QuoteState) -> None:
        self._state = state
        if self.listener is not None:
            try:
                self.listener(state)
            except Exception as e:
                logger.error(f"Quote listener failed: {e}")

    async def get_quote(
        self,
        from_token: TokenRef,
        to_token: TokenRef,
        amount: Union[Decimal, str],
        slippage: Optional[Union[Decimal, str]] = None,
    ) -> Optional[Quote]:
        """Get a quote, superseding every earlier request.

        Returns:
            The quote, or None when a newer request superseded this one

        Raises:
            QuoteUnavailable: Invalid input or backend failure
            InsufficientLiquidity: No route can fill the swap
        """
        sequence = self._next_sequence()
        slippage = self.default_slippage if slippage is None else slippage

        try:
            request = QuoteRequest(
                from_token=from_token,
                to_token=to_token,
                amount=Decimal(str(amount)),
                slippage=Decimal(str(slippage)),
            )
        except (ValidationError, InvalidOperation) as e:
            error = QuoteUnavailable(f"Invalid quote request: {e}")
            self._publish(QuoteState(sequence=sequence, error=error.message, error_kind=error.kind))
            raise error from e

        # Fields are cleared while loading so nothing stale stays visible
        self._publish(QuoteState(sequence=sequence, loading=True))

        if self.debounce_seconds > 0:
            await asyncio.sleep(self.debounce_seconds)
        if not self._is_current(sequence):
            logger.debug(f"Quote #{sequence} superseded during debounce")
            return None

        try:
            token = await self.token_source.get_token() if self.token_source else None
            response = await self.backend.fetch_quote(request, token=token)
            quote = await self.calculator.build_quote(
                request, response, sequence=sequence, ttl_seconds=self.settings.quote_ttl_seconds
            )
        except SwapError as e:
            if not self._is_current(sequence):
                logger.debug(f"Dropping failure of superseded quote #{sequence}: {e.message}")
                return None
            logger.info(f"Quote #{sequence} unavailable: {e.message}")
            self._publish(QuoteState(sequence=sequence, error=e.message, error_kind=e.kind))
            raise
        except Exception as e:
            if not self._is_current(sequence):
                logger.debug(f"Dropping failure of superseded quote #{sequence}: {e}")
                return None
            logger.exception(f"Quote #{sequence} failed unexpectedly: {e}")
            error = QuoteUnavailable(f"Could not get a price for this swap: {e}")
            self._publish(QuoteState(sequence=sequence, error=error.message, error_kind=error.kind))
            raise error from e

        if not self._is_current(sequence):
            logger.debug(f"Discarding stale quote #{sequence} (latest #{self._sequence})")
            return None

        logger.info(f"Quote #{sequence}: {quote.describe()}")
        self._publish(QuoteState(sequence=sequence, quote=quote))
        return quote

    def request(
        self,
        from_token: TokenRef,
        to_token: TokenRef,
        amount: Union[Decimal, str],
        slippage: Optional[Union[Decimal, str]] = None,
    ) -> asyncio.Task:
        """Schedule get_quote in the background, e.g. on every keystroke.

        Failures are reported through ``state``; the task result is the
        quote or None.
        """
        task = asyncio.create_task(self._run(from_token, to_token, amount, slippage))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, from_token, to_token, amount, slippage) -> Optional[Quote]:
        try:
            return await self.get_quote(from_token, to_token, amount, slippage)
        except SwapError:
            # Already published to state
            return None

    def invalidate(self) -> None:
        """Supersede everything in flight and clear the quote fields."""
        sequence = self._next_sequence()
        self._publish(QuoteState(sequence=sequence))

    def current_quote(self) -> Optional[Quote]:
        """The latest applied quote, if still valid."""
        quote = self._state.quote
        if quote is None or quote.is_expired:
            return None
        return quote

    async def aclose(self) -> None:
        """Cancel pending requests. Listeners keep the last published state."""
        self._next_sequence()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
