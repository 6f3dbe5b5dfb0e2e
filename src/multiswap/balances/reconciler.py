"""Post-swap balance reconciliation.

Some ledgers confirm a transaction before their indexers show the new
balance. After a successful swap the balances are re-read on a fixed
interval for a bounded number of attempts, then polling stops no matter
what.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any, Awaitable, Callable, Optional

from multiswap.balances.service import BalanceService
from multiswap.config import Settings, get_settings
from multiswap.tokens.base import TokenRef

logger = logging.getLogger(__name__)

Refresh = Callable[[], Awaitable[Any]]


class BalanceReconciler:
    """Bounded, self-cancelling balance polling.

    Example:
        async with BalanceReconciler(refresh, interval_seconds=2, max_attempts=5) as r:
            await r.wait()
    """

    def __init__(
        self,
        refresh: Refresh,
        interval_seconds: float = 2.0,
        max_attempts: int = 5,
        settled: Optional[Callable[[Any], bool]] = None,
        on_update: Optional[Callable[[Any], None]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.refresh = refresh
        self.interval_seconds = interval_seconds
        self.max_attempts = max_attempts
        self.settled = settled
        self.on_update = on_update
        self.attempts = 0
        self.failures = 0
        self.last_result: Any = None
        self._task: Optional[asyncio.Task] = None

    @classmethod
    def for_swap(
        cls,
        service: BalanceService,
        address: str,
        tokens: list[TokenRef],
        settings: Optional[Settings] = None,
        **kwargs,
    ) -> "BalanceReconciler":
        """Reconciler that re-reads ``tokens`` for ``address``."""
        settings = settings or get_settings()

        async def refresh() -> dict[TokenRef, Decimal]:
            return await service.get_balances(address, tokens)

        return cls(
            refresh,
            interval_seconds=settings.balance_poll_interval_seconds,
            max_attempts=settings.balance_poll_attempts,
            **kwargs,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run(self) -> Any:
        """Poll until settled or out of attempts.

        The first refresh runs immediately, the rest ``interval_seconds``
        apart. Failing refreshes and callbacks are logged, never raised.
        """
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                await asyncio.sleep(self.interval_seconds)
            self.attempts = attempt
            try:
                result = await self.refresh()
            except Exception as e:
                self.failures += 1
                logger.warning(f"Balance refresh {attempt}/{self.max_attempts} failed: {e}")
                continue

            self.last_result = result
            if self.on_update is not None:
                try:
                    self.on_update(result)
                except Exception as e:
                    logger.error(f"Balance listener failed: {e}")
            if self._is_settled(result):
                logger.debug(f"Balances settled after {attempt} refreshes")
                break

        logger.debug(
            f"Balance reconciliation finished: {self.attempts} attempts, {self.failures} failures"
        )
        return self.last_result

    def _is_settled(self, result: Any) -> bool:
        if self.settled is None:
            return False
        try:
            return bool(self.settled(result))
        except Exception as e:
            logger.error(f"Balance settle check failed: {e}")
            return False

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._task = asyncio.create_task(self.run())
        return self._task

    async def wait(self) -> Any:
        if self._task is None:
            return await self.run()
        return await self._task

    async def cancel(self) -> None:
        """Stop polling; no timer survives this call."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def __aenter__(self) -> "BalanceReconciler":
        self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.cancel()
