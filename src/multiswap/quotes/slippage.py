"""Slippage and platform fee math.

The minimum acceptable output is always derived locally from the
tolerance the user asked for, so a quote can never carry a minimum
computed under different inputs.
"""

import logging
import time
from decimal import Decimal
from typing import Optional

from multiswap.chains import ChainConfig, FeeMode
from multiswap.contracts import QuoteRequest, QuoteResponse
from multiswap.errors import QuoteUnavailable
from multiswap.pricing.base import PriceFeed
from multiswap.quotes.base import FeeBreakdown, Quote
from multiswap.tokens.base import TokenRef

logger = logging.getLogger(__name__)

MAX_SLIPPAGE_PERCENT = Decimal("50")


def derive_minimum_output(expected_output: Decimal, slippage_percent: Decimal) -> Decimal:
    """Minimum acceptable output for a tolerance.

    Args:
        expected_output: Expected amount of the output token
        slippage_percent: Tolerance in percent (1 = 1%)

    Raises:
        ValueError: Tolerance outside [0, 50] or negative expected output
    """
    expected_output = Decimal(str(expected_output))
    slippage_percent = Decimal(str(slippage_percent))
    if not Decimal("0") <= slippage_percent <= MAX_SLIPPAGE_PERCENT:
        raise ValueError(f"Slippage must be between 0 and {MAX_SLIPPAGE_PERCENT}%")
    if expected_output < 0:
        raise ValueError("Expected output cannot be negative")
    return expected_output * (Decimal("1") - slippage_percent / Decimal("100"))


class SlippageCalculator:
    """Turns a backend quote response into a Quote with minimum output and fee."""

    def __init__(
        self,
        config: ChainConfig,
        price_feed: Optional[PriceFeed] = None,
        fee_percent: Decimal = Decimal("1"),
    ):
        self.config = config
        self.price_feed = price_feed
        self.fee_percent = Decimal(str(fee_percent))

    async def derive_fee(self, request: QuoteRequest, response: QuoteResponse) -> FeeBreakdown:
        """Platform fee for a swap.

        A fee reported by the backend is taken verbatim in the native token.
        Otherwise the fee is ``fee_percent`` of the input, in the input token
        or converted to the native token at live prices.

        Raises:
            QuoteUnavailable: Native conversion needs a price the feed lacks
        """
        rate = self.fee_percent / Decimal("100")

        if response.platform_fee is not None:
            return FeeBreakdown(
                amount=response.platform_fee,
                currency=self.config.native_symbol,
                percent=self.fee_percent,
                mode=FeeMode.NATIVE,
            )

        if self.config.fee_mode is FeeMode.INPUT or request.from_token.is_native:
            return FeeBreakdown(
                amount=request.amount * rate,
                currency=request.from_token.symbol,
                percent=self.fee_percent,
                mode=FeeMode.NATIVE if request.from_token.is_native else FeeMode.INPUT,
            )

        native = TokenRef(
            symbol=self.config.native_symbol,
            chain=self.config.kind,
            decimals=self.config.native_decimals,
        )
        from_price = native_price = None
        if self.price_feed is not None:
            from_price = await self.price_feed.get_usd_price(request.from_token)
            native_price = await self.price_feed.get_usd_price(native)
        if not from_price or not native_price:
            logger.warning(
                f"No price for {request.from_token.symbol}/{native.symbol}; cannot show platform fee"
            )
            raise QuoteUnavailable(f"Price unavailable to compute the {native.symbol} platform fee")

        value_usd = request.amount * from_price
        return FeeBreakdown(
            amount=value_usd * rate / native_price,
            currency=native.symbol,
            percent=self.fee_percent,
            mode=FeeMode.NATIVE,
        )

    async def build_quote(
        self,
        request: QuoteRequest,
        response: QuoteResponse,
        sequence: int = 0,
        ttl_seconds: int = 60,
    ) -> Quote:
        """Build a Quote from a successful backend response.

        Raises:
            QuoteUnavailable: The response has no usable expected output
        """
        expected = response.expected_output
        if expected is None or expected <= 0:
            raise QuoteUnavailable(response.error or "Quote returned no output amount")

        minimum = derive_minimum_output(expected, request.slippage)

        if response.min_output is not None and response.min_output != minimum:
            logger.debug(
                f"Backend minimum {response.min_output} differs from local {minimum}; using local"
            )
        if (
            response.slippage_percent_used is not None
            and response.slippage_percent_used != request.slippage
        ):
            logger.warning(
                f"Backend priced with {response.slippage_percent_used}% slippage, "
                f"requested {request.slippage}%"
            )

        rate = response.rate if response.rate else expected / request.amount
        fee = await self.derive_fee(request, response)

        return Quote(
            from_token=request.from_token,
            to_token=request.to_token,
            input_amount=request.amount,
            expected_output=expected,
            minimum_output=minimum,
            rate=rate,
            slippage_percent_used=request.slippage,
            price_impact=response.price_impact,
            platform_fee=fee,
            sequence=sequence,
            timestamp=time.time(),
            ttl_seconds=ttl_seconds,
        )
