"""Chain-scoped token references."""

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from multiswap.chains import ChainKind


@dataclass(frozen=True)
class TokenRef:
    """A token on one chain.

    Identity is (chain, issuer_or_address, symbol); the display price is
    metadata and does not take part in equality.
    """

    symbol: str
    chain: ChainKind
    issuer_or_address: str = ""  # Empty = native asset
    decimals: int = 6
    display_price: Optional[Decimal] = field(default=None, compare=False)
    name: Optional[str] = field(default=None, compare=False)

    @property
    def is_native(self) -> bool:
        return not self.issuer_or_address

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.chain.value, self.issuer_or_address, self.symbol)

    def with_price(self, price: Optional[Decimal]) -> "TokenRef":
        return replace(self, display_price=price)

    def to_base_units(self, amount: Decimal) -> int:
        """Convert a human-readable amount to integer base units."""
        return int(amount * (Decimal(10) ** self.decimals))

    def from_base_units(self, raw: int | str) -> Decimal:
        return Decimal(str(raw)) / (Decimal(10) ** self.decimals)

    def __str__(self) -> str:
        if self.is_native:
            return f"{self.symbol} ({self.chain.value})"
        return f"{self.symbol}.{self.issuer_or_address[:8]} ({self.chain.value})"
