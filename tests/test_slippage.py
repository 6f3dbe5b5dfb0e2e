"""Tests for slippage and platform fee math."""

from decimal import Decimal

import pytest

from multiswap.chains import ChainKind, FeeMode, get_chain_config
from multiswap.contracts import QuoteRequest, QuoteResponse
from multiswap.errors import QuoteUnavailable
from multiswap.pricing.base import StaticPriceFeed
from multiswap.quotes.base import Quote
from multiswap.quotes.slippage import SlippageCalculator, derive_minimum_output
from multiswap.tokens.base import TokenRef


class TestDeriveMinimumOutput:
    """Tests for the minimum output formula."""

    def test_one_percent_of_hundred(self):
        """10 in at 1% with 100 expected out leaves a minimum of 99."""
        assert derive_minimum_output(Decimal("100"), Decimal("1")) == Decimal("99")

    def test_zero_slippage_keeps_expected(self):
        assert derive_minimum_output(Decimal("42.5"), Decimal("0")) == Decimal("42.5")

    def test_max_slippage_halves(self):
        assert derive_minimum_output(Decimal("10"), Decimal("50")) == Decimal("5")

    def test_minimum_never_exceeds_expected(self):
        """Across the allowed tolerance range the minimum stays below expected."""
        for expected in ("0", "0.000001", "1", "99.99", "123456789.123456"):
            for slippage in ("0", "0.1", "1", "5", "12.5", "50"):
                minimum = derive_minimum_output(Decimal(expected), Decimal(slippage))
                assert Decimal("0") <= minimum <= Decimal(expected)

    @pytest.mark.parametrize("slippage", ["-0.1", "50.01", "100"])
    def test_out_of_range_slippage_rejected(self, slippage):
        with pytest.raises(ValueError):
            derive_minimum_output(Decimal("100"), Decimal(slippage))

    def test_negative_expected_rejected(self):
        with pytest.raises(ValueError):
            derive_minimum_output(Decimal("-1"), Decimal("1"))


class TestQuoteRequest:
    """Tests for quote input validation."""

    def test_amount_must_be_positive(self, usdc_evm, eth):
        with pytest.raises(ValueError):
            QuoteRequest(from_token=usdc_evm, to_token=eth, amount=Decimal("0"), slippage=Decimal("1"))

    def test_slippage_range(self, usdc_evm, eth):
        with pytest.raises(ValueError):
            QuoteRequest(from_token=usdc_evm, to_token=eth, amount=Decimal("1"), slippage=Decimal("51"))

    def test_cross_chain_rejected(self, xrp, eth):
        with pytest.raises(ValueError, match="Cross-chain"):
            QuoteRequest(from_token=xrp, to_token=eth, amount=Decimal("1"), slippage=Decimal("1"))

    def test_same_token_rejected(self, xrp):
        with pytest.raises(ValueError):
            QuoteRequest(from_token=xrp, to_token=xrp, amount=Decimal("1"), slippage=Decimal("1"))


class TestSlippageCalculator:
    """Tests for building quotes from backend responses."""

    @pytest.mark.asyncio
    async def test_input_fee_scenario(self, settings, usdc_evm, eth):
        """10 USDC at 1% with 100 expected: minimum 99, fee 0.1 USDC."""
        calc = SlippageCalculator(get_chain_config(ChainKind.EVM, settings))
        request = QuoteRequest(
            from_token=usdc_evm, to_token=eth, amount=Decimal("10"), slippage=Decimal("1")
        )
        response = QuoteResponse(success=True, expected_output=Decimal("100"))

        quote = await calc.build_quote(request, response, sequence=7)

        assert quote.minimum_output == Decimal("99")
        assert quote.slippage_percent_used == Decimal("1")
        assert quote.platform_fee.amount == Decimal("0.1")
        assert quote.platform_fee.currency == "USDC"
        assert quote.platform_fee.mode == FeeMode.INPUT
        assert quote.rate == Decimal("10")
        assert quote.sequence == 7

    @pytest.mark.asyncio
    async def test_backend_minimum_is_not_adopted(self, settings, xrp, rlusd):
        """The minimum comes from the requested tolerance, not the backend's figure."""
        calc = SlippageCalculator(get_chain_config(ChainKind.XRPL, settings))
        request = QuoteRequest(from_token=xrp, to_token=rlusd, amount=Decimal("10"), slippage=Decimal("2"))
        response = QuoteResponse.model_validate(
            {
                "success": True,
                "estimatedOutput": "25",
                "minimumReceived": "23.75",
                "slippagePercentUsed": 5,
            }
        )

        quote = await calc.build_quote(request, response)

        assert quote.minimum_output == Decimal("24.5")
        assert quote.slippage_percent_used == Decimal("2")

    @pytest.mark.asyncio
    async def test_backend_native_fee_taken_verbatim(self, settings, rlusd, xrp):
        calc = SlippageCalculator(get_chain_config(ChainKind.XRPL, settings))
        request = QuoteRequest(from_token=rlusd, to_token=xrp, amount=Decimal("50"), slippage=Decimal("5"))
        response = QuoteResponse.model_validate(
            {"success": True, "expectedOutput": "20", "platformFeeXrp": "0.2"}
        )

        quote = await calc.build_quote(request, response)

        assert quote.platform_fee.amount == Decimal("0.2")
        assert quote.platform_fee.currency == "XRP"
        assert quote.platform_fee.mode == FeeMode.NATIVE

    @pytest.mark.asyncio
    async def test_solana_fee_converted_with_live_price(self, settings, usdc_sol, sol):
        """1% of the USD value of the input, paid in SOL."""
        feed = StaticPriceFeed({"SOL": Decimal("150")})
        calc = SlippageCalculator(get_chain_config(ChainKind.SOLANA, settings), price_feed=feed)
        request = QuoteRequest(
            from_token=usdc_sol, to_token=sol, amount=Decimal("300"), slippage=Decimal("1")
        )
        response = QuoteResponse(success=True, expected_output=Decimal("2"))

        quote = await calc.build_quote(request, response)

        # 300 USD * 1% / 150 USD per SOL
        assert quote.platform_fee.amount == Decimal("0.02")
        assert quote.platform_fee.currency == "SOL"

    @pytest.mark.asyncio
    async def test_solana_native_input_needs_no_price(self, settings, sol, usdc_sol):
        calc = SlippageCalculator(get_chain_config(ChainKind.SOLANA, settings))
        request = QuoteRequest(from_token=sol, to_token=usdc_sol, amount=Decimal("2"), slippage=Decimal("1"))
        response = QuoteResponse(success=True, expected_output=Decimal("300"))

        quote = await calc.build_quote(request, response)

        assert quote.platform_fee.amount == Decimal("0.02")
        assert quote.platform_fee.currency == "SOL"

    @pytest.mark.asyncio
    async def test_solana_missing_price_blocks_quote(self, settings, sol):
        calc = SlippageCalculator(
            get_chain_config(ChainKind.SOLANA, settings), price_feed=StaticPriceFeed({})
        )
        bonk = TokenRef(
            symbol="BONK",
            chain=ChainKind.SOLANA,
            issuer_or_address="DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
            decimals=5,
        )
        request = QuoteRequest(from_token=bonk, to_token=sol, amount=Decimal("1000"), slippage=Decimal("1"))
        response = QuoteResponse(success=True, expected_output=Decimal("0.01"))

        with pytest.raises(QuoteUnavailable):
            await calc.build_quote(request, response)

    @pytest.mark.asyncio
    async def test_missing_expected_output_is_unavailable(self, settings, usdc_evm, eth):
        calc = SlippageCalculator(get_chain_config(ChainKind.EVM, settings))
        request = QuoteRequest(from_token=usdc_evm, to_token=eth, amount=Decimal("10"), slippage=Decimal("1"))

        with pytest.raises(QuoteUnavailable):
            await calc.build_quote(request, QuoteResponse(success=True))


class TestQuote:
    """Tests for the Quote value object."""

    def test_minimum_above_expected_rejected(self, xrp, rlusd):
        with pytest.raises(ValueError):
            Quote(
                from_token=xrp,
                to_token=rlusd,
                input_amount=Decimal("1"),
                expected_output=Decimal("1"),
                minimum_output=Decimal("2"),
                rate=Decimal("1"),
                slippage_percent_used=Decimal("1"),
            )

    def test_expiry(self, xrp, rlusd):
        quote = Quote(
            from_token=xrp,
            to_token=rlusd,
            input_amount=Decimal("1"),
            expected_output=Decimal("2"),
            minimum_output=Decimal("1.9"),
            rate=Decimal("2"),
            slippage_percent_used=Decimal("5"),
            timestamp=0,
            ttl_seconds=60,
        )

        assert quote.is_expired is True
        assert quote.seconds_until_expiry < 0
        assert quote.effective_rate == Decimal("2")
