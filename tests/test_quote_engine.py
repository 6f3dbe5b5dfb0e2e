"""Tests for the debounced, sequence-gated quote engine."""

import asyncio
from decimal import Decimal
from typing import Optional

import pytest

from multiswap.chains import ChainKind, get_chain_config
from multiswap.contracts import QuoteResponse
from multiswap.errors import InsufficientLiquidity, QuoteUnavailable
from multiswap.quotes.engine import QuoteEngine
from multiswap.quotes.slippage import SlippageCalculator
from multiswap.wallets.auth import CallbackTokenSource


class StubBackend:
    """Backend that answers amount * 10, optionally held at a gate per amount."""

    def __init__(self, config):
        self.config = config
        self.calls = []
        self.gates: dict[Decimal, asyncio.Event] = {}
        self.error: Optional[Exception] = None

    async def fetch_quote(self, request, token=None):
        self.calls.append((request, token))
        gate = self.gates.get(request.amount)
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        return QuoteResponse(success=True, expected_output=request.amount * 10)


@pytest.fixture
def backend(settings):
    return StubBackend(get_chain_config(ChainKind.EVM, settings))


@pytest.fixture
def engine(backend, settings):
    calc = SlippageCalculator(backend.config)
    return QuoteEngine(backend, calc, settings=settings, debounce_seconds=0)


class TestQuoteEngine:
    """Tests for QuoteEngine."""

    @pytest.mark.asyncio
    async def test_get_quote_applies_state(self, engine, usdc_evm, eth):
        quote = await engine.get_quote(usdc_evm, eth, "10", "1")

        assert quote.expected_output == Decimal("100")
        assert quote.minimum_output == Decimal("99")
        assert engine.state.quote is quote
        assert engine.state.error is None
        assert engine.state.sequence == quote.sequence == 1

    @pytest.mark.asyncio
    async def test_default_slippage_from_chain(self, engine, usdc_evm, eth):
        quote = await engine.get_quote(usdc_evm, eth, "10")

        assert quote.slippage_percent_used == Decimal("1")

    @pytest.mark.asyncio
    async def test_stale_response_discarded(self, engine, backend, usdc_evm, eth):
        """A slow response for 10 arriving after the response for 20 is dropped."""
        gate = asyncio.Event()
        backend.gates[Decimal("10")] = gate

        first = engine.request(usdc_evm, eth, "10", "1")
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert len(backend.calls) == 1

        second = await engine.get_quote(usdc_evm, eth, "20", "1")
        gate.set()
        stale = await first

        assert stale is None
        assert second.expected_output == Decimal("200")
        assert engine.state.quote is second
        assert engine.state.sequence == 2

    @pytest.mark.asyncio
    async def test_debounce_sends_only_latest(self, backend, settings, usdc_evm, eth):
        engine = QuoteEngine(
            backend, SlippageCalculator(backend.config), settings=settings, debounce_seconds=0.05
        )

        tasks = [engine.request(usdc_evm, eth, amount, "1") for amount in ("1", "12", "123")]
        results = await asyncio.gather(*tasks)

        assert results[0] is None
        assert results[1] is None
        assert results[2].input_amount == Decimal("123")
        assert [call[0].amount for call in backend.calls] == [Decimal("123")]

    @pytest.mark.asyncio
    async def test_failure_clears_quote(self, engine, backend, usdc_evm, eth):
        await engine.get_quote(usdc_evm, eth, "10", "1")
        backend.error = QuoteUnavailable("Backend down")

        with pytest.raises(QuoteUnavailable):
            await engine.get_quote(usdc_evm, eth, "11", "1")

        assert engine.state.quote is None
        assert engine.state.minimum_output is None
        assert engine.state.platform_fee is None
        assert engine.state.error == "Backend down"
        assert engine.state.error_kind == "QuoteUnavailable"

    @pytest.mark.asyncio
    async def test_liquidity_error_surfaces_verbatim(self, engine, backend, usdc_evm, eth):
        backend.error = InsufficientLiquidity("Pool too shallow for 10 USDC")

        with pytest.raises(InsufficientLiquidity):
            await engine.get_quote(usdc_evm, eth, "10", "1")

        assert engine.state.error == "Pool too shallow for 10 USDC"

    @pytest.mark.asyncio
    async def test_no_automatic_retry(self, engine, backend, usdc_evm, eth):
        backend.error = QuoteUnavailable()

        with pytest.raises(QuoteUnavailable):
            await engine.get_quote(usdc_evm, eth, "10", "1")

        assert len(backend.calls) == 1

    @pytest.mark.asyncio
    async def test_stale_failure_dropped(self, engine, backend, usdc_evm, eth):
        gate = asyncio.Event()
        backend.gates[Decimal("10")] = gate
        backend.error = QuoteUnavailable("late failure")

        first = engine.request(usdc_evm, eth, "10", "1")
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        engine.invalidate()
        gate.set()

        assert await first is None
        assert engine.state.error is None
        assert engine.state.quote is None

    @pytest.mark.asyncio
    async def test_invalid_amount_rejected(self, engine, backend, usdc_evm, eth):
        with pytest.raises(QuoteUnavailable):
            await engine.get_quote(usdc_evm, eth, "0", "1")

        with pytest.raises(QuoteUnavailable):
            await engine.get_quote(usdc_evm, eth, "", "1")

        assert backend.calls == []
        assert engine.state.error is not None

    @pytest.mark.asyncio
    async def test_token_read_fresh_per_request(self, backend, settings, usdc_evm, eth):
        tokens = iter(["token-1", "token-2"])
        engine = QuoteEngine(
            backend,
            SlippageCalculator(backend.config),
            settings=settings,
            token_source=CallbackTokenSource(lambda: next(tokens)),
            debounce_seconds=0,
        )

        await engine.get_quote(usdc_evm, eth, "1", "1")
        await engine.get_quote(usdc_evm, eth, "2", "1")

        assert [call[1] for call in backend.calls] == ["token-1", "token-2"]

    @pytest.mark.asyncio
    async def test_listener_sees_loading_then_quote(self, engine, usdc_evm, eth):
        states = []
        engine.listener = states.append

        await engine.get_quote(usdc_evm, eth, "10", "1")

        assert states[0].loading is True
        assert states[0].quote is None
        assert states[-1].quote is not None
        assert states[-1].loading is False

    @pytest.mark.asyncio
    async def test_aclose_cancels_pending(self, backend, settings, usdc_evm, eth):
        engine = QuoteEngine(
            backend, SlippageCalculator(backend.config), settings=settings, debounce_seconds=10
        )
        task = engine.request(usdc_evm, eth, "10", "1")
        await asyncio.sleep(0)

        await engine.aclose()

        assert task.done()
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_aclose_keeps_last_published_state(self, backend, settings, usdc_evm, eth):
        states = []
        engine = QuoteEngine(
            backend,
            SlippageCalculator(backend.config),
            settings=settings,
            debounce_seconds=0,
            listener=states.append,
        )
        quote = await engine.get_quote(usdc_evm, eth, "10", "1")

        await engine.aclose()

        assert states[-1].quote is quote
        assert engine.state.quote is quote

    @pytest.mark.asyncio
    async def test_failing_token_source_clears_loading(self, backend, settings, usdc_evm, eth):
        def broken_auth():
            raise RuntimeError("auth storage unavailable")

        engine = QuoteEngine(
            backend,
            SlippageCalculator(backend.config),
            settings=settings,
            token_source=CallbackTokenSource(broken_auth),
            debounce_seconds=0,
        )

        with pytest.raises(QuoteUnavailable):
            await engine.get_quote(usdc_evm, eth, "10", "1")

        assert engine.state.loading is False
        assert engine.state.error_kind == "QuoteUnavailable"
        assert "auth storage unavailable" in engine.state.error
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_unexpected_backend_error_becomes_unavailable(self, engine, backend, usdc_evm, eth):
        backend.error = KeyError("outAmount")

        with pytest.raises(QuoteUnavailable):
            await engine.get_quote(usdc_evm, eth, "10", "1")

        assert engine.state.loading is False
        assert engine.state.quote is None
        assert engine.state.error is not None

    @pytest.mark.asyncio
    async def test_unexpected_error_of_superseded_request_dropped(
        self, engine, backend, usdc_evm, eth
    ):
        gate = asyncio.Event()
        backend.gates[Decimal("10")] = gate
        backend.error = ValueError("boom")

        first = engine.request(usdc_evm, eth, "10", "1")
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        engine.invalidate()
        gate.set()

        assert await first is None
        assert engine.state.error is None
