"""Tests for balance reads and post-swap reconciliation."""

import asyncio
from decimal import Decimal

import pytest

from multiswap.balances import BalanceReconciler, BalanceService
from multiswap.chains import ChainKind
from multiswap.errors import BackendExecutionError

from conftest import XRPL_ADDRESS


class TestBalanceService:
    """Tests for BalanceService."""

    @pytest.mark.asyncio
    async def test_get_balances(self, api, xrpl_backend, xrp, rlusd):
        api.on("GET", f"/api/xrpl/balance/{XRPL_ADDRESS}", {"success": True, "balance": "20"})
        api.on(
            "GET",
            f"/api/xrpl/token-balance/{XRPL_ADDRESS}/RLUSD/{rlusd.issuer_or_address}",
            {"success": True, "balance": "5.5"},
        )
        service = BalanceService({ChainKind.XRPL: xrpl_backend})

        balances = await service.get_balances(XRPL_ADDRESS, [xrp, rlusd])

        assert balances == {xrp: Decimal("20"), rlusd: Decimal("5.5")}

    @pytest.mark.asyncio
    async def test_unknown_chain(self, xrpl_backend, eth):
        service = BalanceService({ChainKind.XRPL: xrpl_backend})

        with pytest.raises(ValueError):
            await service.get_balance(XRPL_ADDRESS, eth)


class TestBalanceReconciler:
    """Tests for BalanceReconciler."""

    @pytest.mark.asyncio
    async def test_bounded_when_every_refresh_fails(self):
        calls = []

        async def refresh():
            calls.append(1)
            raise BackendExecutionError("indexer lagging")

        reconciler = BalanceReconciler(refresh, interval_seconds=0.001, max_attempts=5)

        result = await reconciler.wait()

        assert result is None
        assert len(calls) == 5
        assert reconciler.failures == 5

    @pytest.mark.asyncio
    async def test_stops_when_settled(self):
        values = iter([Decimal("1"), Decimal("1"), Decimal("2"), Decimal("2")])
        updates = []

        async def refresh():
            return next(values)

        reconciler = BalanceReconciler(
            refresh,
            interval_seconds=0.001,
            max_attempts=5,
            settled=lambda balance: balance == Decimal("2"),
            on_update=updates.append,
        )

        result = await reconciler.wait()

        assert result == Decimal("2")
        assert reconciler.attempts == 3
        assert updates == [Decimal("1"), Decimal("1"), Decimal("2")]

    @pytest.mark.asyncio
    async def test_cancel_leaves_no_timer(self):
        calls = []

        async def refresh():
            calls.append(1)

        reconciler = BalanceReconciler(refresh, interval_seconds=10, max_attempts=5)
        task = reconciler.start()

        await reconciler.cancel()
        await asyncio.sleep(0)

        assert task.cancelled()
        assert reconciler.running is False
        assert calls == []

    @pytest.mark.asyncio
    async def test_context_manager_cancels_on_exit(self):
        async def refresh():
            return None

        async with BalanceReconciler(refresh, interval_seconds=10, max_attempts=3) as reconciler:
            assert reconciler.running is True

        assert reconciler.running is False

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        async def refresh():
            return None

        reconciler = BalanceReconciler(refresh, interval_seconds=10, max_attempts=1)

        assert reconciler.start() is reconciler.start()
        await reconciler.cancel()

    @pytest.mark.asyncio
    async def test_for_swap_uses_settings(self, api, xrpl_backend, settings, xrp):
        api.on("GET", f"/api/xrpl/balance/{XRPL_ADDRESS}", {"success": True, "balance": "7"})
        service = BalanceService({ChainKind.XRPL: xrpl_backend})

        reconciler = BalanceReconciler.for_swap(service, XRPL_ADDRESS, [xrp], settings=settings)
        result = await reconciler.wait()

        assert reconciler.max_attempts == settings.balance_poll_attempts
        assert result == {xrp: Decimal("7")}
        assert len(api.calls(f"/api/xrpl/balance/{XRPL_ADDRESS}")) == settings.balance_poll_attempts

    def test_attempts_must_be_positive(self):
        async def refresh():
            return None

        with pytest.raises(ValueError):
            BalanceReconciler(refresh, max_attempts=0)

    @pytest.mark.asyncio
    async def test_first_refresh_is_immediate(self):
        refreshed = asyncio.Event()

        async def refresh():
            refreshed.set()

        reconciler = BalanceReconciler(refresh, interval_seconds=10, max_attempts=3)
        reconciler.start()

        await asyncio.wait_for(refreshed.wait(), timeout=1)
        await reconciler.cancel()

        assert reconciler.attempts == 1

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_stop_polling(self):
        calls = []

        async def refresh():
            calls.append(1)
            return Decimal(len(calls))

        def broken(balances):
            raise RuntimeError("render failed")

        reconciler = BalanceReconciler(
            refresh, interval_seconds=0.001, max_attempts=5, on_update=broken
        )

        result = await reconciler.wait()

        assert len(calls) == 5
        assert result == Decimal("5")

    @pytest.mark.asyncio
    async def test_failing_settle_check_counts_as_unsettled(self):
        calls = []

        async def refresh():
            calls.append(1)

        def broken(balances):
            raise KeyError("RLUSD")

        reconciler = BalanceReconciler(
            refresh, interval_seconds=0.001, max_attempts=3, settled=broken
        )
        task = reconciler.start()

        await reconciler.wait()

        assert len(calls) == 3
        assert task.exception() is None
