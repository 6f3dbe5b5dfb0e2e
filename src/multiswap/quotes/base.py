"""Quote value objects."""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from multiswap.chains import ChainKind, FeeMode
from multiswap.tokens.base import TokenRef


@dataclass(frozen=True)
class FeeBreakdown:
    """Platform fee shown to the user before confirming."""

    amount: Decimal
    currency: str
    percent: Decimal
    mode: FeeMode

    def __str__(self) -> str:
        return f"{self.amount:.6f} {self.currency} ({self.percent}%)"


@dataclass(frozen=True)
class Quote:
    """A priced estimate of a swap, valid until superseded or expired.

    Quotes are never mutated; a new request produces a new Quote.
    """

    from_token: TokenRef
    to_token: TokenRef
    input_amount: Decimal
    expected_output: Decimal
    minimum_output: Decimal
    rate: Decimal
    slippage_percent_used: Decimal
    price_impact: Optional[Decimal] = None
    platform_fee: Optional[FeeBreakdown] = None
    sequence: int = 0
    timestamp: float = field(default_factory=time.time)
    ttl_seconds: int = 60

    def __post_init__(self):
        if self.minimum_output > self.expected_output:
            raise ValueError(
                f"minimum_output {self.minimum_output} exceeds expected_output {self.expected_output}"
            )

    @property
    def chain(self) -> ChainKind:
        return self.from_token.chain

    @property
    def effective_rate(self) -> Decimal:
        """Get effective exchange rate."""
        if self.input_amount == 0:
            return Decimal("0")
        return self.expected_output / self.input_amount

    @property
    def is_expired(self) -> bool:
        """Check if quote has expired."""
        return time.time() > (self.timestamp + self.ttl_seconds)

    @property
    def seconds_until_expiry(self) -> float:
        """Get seconds until quote expires (negative if expired)."""
        return (self.timestamp + self.ttl_seconds) - time.time()

    def describe(self) -> str:
        return (
            f"{self.input_amount} {self.from_token.symbol} -> {self.expected_output} "
            f"{self.to_token.symbol} (min {self.minimum_output}, {self.slippage_percent_used}% slippage)"
        )


@dataclass(frozen=True)
class QuoteState:
    """What the UI shows for the quote fields; replaced wholesale on every update.

    A state with neither quote nor error means the fields are cleared.
    """

    sequence: int = 0
    quote: Optional[Quote] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    loading: bool = False

    @property
    def minimum_output(self) -> Optional[Decimal]:
        return self.quote.minimum_output if self.quote else None

    @property
    def platform_fee(self) -> Optional[FeeBreakdown]:
        return self.quote.platform_fee if self.quote else None
