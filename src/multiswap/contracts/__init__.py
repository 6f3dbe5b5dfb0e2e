"""Wire contracts for the swap backend."""

from multiswap.contracts.execution import (
    ExecuteResponse,
    PayloadStatus,
    UnsignedTransaction,
)
from multiswap.contracts.quotes import (
    AllowanceCheckResponse,
    LiquidityCheckResponse,
    QuoteRequest,
    QuoteResponse,
    TrustlineCheckResponse,
)
from multiswap.contracts.tokens import BalanceResponse, TokenInfo

__all__ = [
    "AllowanceCheckResponse",
    "BalanceResponse",
    "ExecuteResponse",
    "LiquidityCheckResponse",
    "PayloadStatus",
    "QuoteRequest",
    "QuoteResponse",
    "TokenInfo",
    "TrustlineCheckResponse",
    "UnsignedTransaction",
]
