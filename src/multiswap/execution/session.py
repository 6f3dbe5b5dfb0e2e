"""Swap session value object."""

import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Optional

from multiswap.quotes.base import FeeBreakdown, Quote

TOTAL_STEPS = 3


class SwapStatus(str, Enum):
    """Lifecycle of one swap attempt."""

    IDLE = "idle"
    PREPARING = "preparing"      # Trustline / approval / liquidity checks
    SIGNING = "signing"          # Waiting on the wallet
    SUBMITTING = "submitting"    # Signed, being submitted
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_busy(self) -> bool:
        return self in (SwapStatus.PREPARING, SwapStatus.SIGNING, SwapStatus.SUBMITTING)

    @property
    def is_final(self) -> bool:
        return self in (SwapStatus.SUCCESS, SwapStatus.ERROR)


STEP_FOR_STATUS = {
    SwapStatus.IDLE: 0,
    SwapStatus.PREPARING: 1,
    SwapStatus.SIGNING: 2,
    SwapStatus.SUBMITTING: 3,
    SwapStatus.SUCCESS: 3,
}


@dataclass(frozen=True)
class SwapSession:
    """Progress of one swap attempt as shown to the user.

    Replaced wholesale on every change; an error session is kept until
    the user dismisses it.
    """

    status: SwapStatus = SwapStatus.IDLE
    step: int = 0
    total_steps: int = TOTAL_STEPS
    message: str = ""
    tx_hash: Optional[str] = None
    error_message: Optional[str] = None
    error_kind: Optional[str] = None
    requires_reauth: bool = False
    neutral: bool = False
    from_amount: Optional[Decimal] = None
    to_amount: Optional[Decimal] = None
    from_symbol: Optional[str] = None
    to_symbol: Optional[str] = None
    fee: Optional[FeeBreakdown] = None
    notes: tuple[str, ...] = ()
    attempt_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])

    @classmethod
    def for_quote(cls, quote: Quote) -> "SwapSession":
        return cls(
            status=SwapStatus.PREPARING,
            step=STEP_FOR_STATUS[SwapStatus.PREPARING],
            message="Preparing swap...",
            from_amount=quote.input_amount,
            to_amount=quote.expected_output,
            from_symbol=quote.from_token.symbol,
            to_symbol=quote.to_token.symbol,
            fee=quote.platform_fee,
        )

    def evolve(self, **changes) -> "SwapSession":
        return replace(self, **changes)

    @property
    def progress_percent(self) -> int:
        if self.total_steps == 0:
            return 0
        return int(self.step * 100 / self.total_steps)

    def to_dict(self) -> dict:
        """Progress payload for a UI."""
        return {
            "status": self.status.value,
            "step": self.step,
            "totalSteps": self.total_steps,
            "message": self.message,
            "txHash": self.tx_hash,
            "error": self.error_message,
            "errorKind": self.error_kind,
            "requiresReauth": self.requires_reauth,
            "neutral": self.neutral,
            "fromAmount": str(self.from_amount) if self.from_amount is not None else None,
            "toAmount": str(self.to_amount) if self.to_amount is not None else None,
            "fromSymbol": self.from_symbol,
            "toSymbol": self.to_symbol,
            "fee": str(self.fee) if self.fee else None,
            "notes": list(self.notes),
        }
