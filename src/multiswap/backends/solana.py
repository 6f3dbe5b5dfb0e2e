"""Solana swap backend.

The backend proxies Jupiter: amounts travel in base units (lamports for
SOL) and slippage in basis points. The platform fee is charged in SOL.
"""

import logging
from decimal import Decimal
from typing import Optional

from multiswap.backends.base import ChainBackend
from multiswap.chains import ChainKind
from multiswap.contracts import QuoteRequest, QuoteResponse, TokenInfo
from multiswap.quotes.base import Quote
from multiswap.tokens.base import TokenRef

logger = logging.getLogger(__name__)


class SolanaBackend(ChainBackend):
    """Swap endpoints for Solana."""

    chain = ChainKind.SOLANA
    quote_path = "/api/solana/swap/quote"
    execute_path = "/api/solana/swap/execute"
    prepare_path = "/api/solana/swap/transaction"

    def _mint(self, token: TokenRef) -> str:
        return token.issuer_or_address or self.config.native_address

    @staticmethod
    def _slippage_bps(slippage) -> int:
        return int(slippage * 100)

    def quote_payload(self, request: QuoteRequest) -> dict:
        return {
            "inputMint": self._mint(request.from_token),
            "outputMint": self._mint(request.to_token),
            "amount": str(request.from_token.to_base_units(request.amount)),
            "slippageBps": self._slippage_bps(request.slippage),
        }

    def parse_quote(self, request: QuoteRequest, data: dict) -> QuoteResponse:
        parsed = QuoteResponse.model_validate(data)
        inner = data.get("quote")
        if not isinstance(inner, dict):
            return parsed

        updates = {}
        if parsed.expected_output is None and inner.get("outAmount") is not None:
            updates["expected_output"] = request.to_token.from_base_units(inner["outAmount"])
        if parsed.price_impact is None and inner.get("priceImpactPct") is not None:
            updates["price_impact"] = Decimal(str(inner["priceImpactPct"]))
        return parsed.model_copy(update=updates) if updates else parsed

    def execute_payload(self, quote: Quote, address: str) -> dict:
        payload = {
            "inputMint": self._mint(quote.from_token),
            "outputMint": self._mint(quote.to_token),
            "amount": str(quote.from_token.to_base_units(quote.input_amount)),
            "slippageBps": self._slippage_bps(quote.slippage_percent_used),
            "userPublicKey": address,
        }
        if quote.platform_fee is not None:
            payload["solFee"] = {"amount": float(quote.platform_fee.amount)}
        return payload

    def prepare_payload(self, quote: Quote, address: str, wallet_type: str) -> dict:
        return {**self.execute_payload(quote, address), "walletType": wallet_type}

    def balance_path(self, address: str, token: TokenRef) -> tuple[str, Optional[dict]]:
        if token.is_native:
            return f"/api/solana/balance/{address}", None
        return f"/api/solana/token-balance/{address}/{token.issuer_or_address}", None

    async def search_tokens(self, query: str) -> list[TokenInfo]:
        return await self._get_token_list("/api/solana/tokens/search", params={"query": query})

    async def token_info(self, address: str) -> Optional[TokenInfo]:
        tokens = await self._get_token_list("/api/solana/token-info", params={"address": address})
        return tokens[0] if tokens else None
