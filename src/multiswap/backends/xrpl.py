"""XRP Ledger swap backend.

XRPL tokens are identified by (currency symbol, issuer account); the
native asset has no issuer. Non-native outputs need a trustline, which the
execute endpoint sets up when missing.
"""

import logging
from typing import Optional
from urllib.parse import quote as urlquote

import httpx

from multiswap.backends.base import ChainBackend
from multiswap.backends.http import parse_json
from multiswap.chains import ChainKind
from multiswap.contracts import (
    LiquidityCheckResponse,
    QuoteRequest,
    TokenInfo,
    TrustlineCheckResponse,
)
from multiswap.errors import QuoteUnavailable, SessionExpired
from multiswap.quotes.base import Quote
from multiswap.tokens.base import TokenRef

logger = logging.getLogger(__name__)


class XRPLBackend(ChainBackend):
    """Swap endpoints for the XRP Ledger."""

    chain = ChainKind.XRPL
    quote_path = "/api/xrpl/swap/v2/quote"
    execute_path = "/api/xrpl/swap/v2/execute"
    prepare_path = "/api/xrpl/swap/deeplink"
    liquidity_path = "/api/xrpl/liquidity/check"
    trustline_path = "/api/xrpl/trustline/check"

    @staticmethod
    def _pair(from_token: TokenRef, to_token: TokenRef) -> dict:
        return {
            "fromToken": from_token.symbol,
            "toToken": to_token.symbol,
            "fromIssuer": from_token.issuer_or_address,
            "toIssuer": to_token.issuer_or_address,
        }

    def quote_payload(self, request: QuoteRequest) -> dict:
        return {
            **self._pair(request.from_token, request.to_token),
            "amount": str(request.amount),
            "slippagePercent": str(request.slippage),
        }

    def execute_payload(self, quote: Quote, address: str) -> dict:
        return {
            **self._pair(quote.from_token, quote.to_token),
            "amount": str(quote.input_amount),
            "slippagePercent": str(quote.slippage_percent_used),
            "walletAddress": address,
        }

    def prepare_payload(self, quote: Quote, address: str, wallet_type: str) -> dict:
        # Remote wallets sign exactly the figures the user confirmed
        return {
            **self._pair(quote.from_token, quote.to_token),
            "amount": str(quote.input_amount),
            "slippage": str(quote.slippage_percent_used),
            "walletAddress": address,
            "walletType": wallet_type,
            "expectedOutput": str(quote.expected_output),
            "minOutput": str(quote.minimum_output),
        }

    def balance_path(self, address: str, token: TokenRef) -> tuple[str, Optional[dict]]:
        if token.is_native:
            return f"/api/xrpl/balance/{address}", None
        return (
            f"/api/xrpl/token-balance/{address}/{urlquote(token.symbol)}/{token.issuer_or_address}",
            None,
        )

    async def check_liquidity(self, quote: Quote) -> LiquidityCheckResponse:
        """Ask whether the AMM/order book can fill the swap.

        Raises:
            QuoteUnavailable: The check itself could not be performed
        """
        payload = {
            **self._pair(quote.from_token, quote.to_token),
            "amount": str(quote.input_amount),
        }
        try:
            response = await self.client.post(self.liquidity_path, payload)
        except httpx.HTTPError as e:
            raise QuoteUnavailable(f"Liquidity check failed: {e}") from e

        data = parse_json(response)
        if response.status_code >= 400 and not data:
            raise QuoteUnavailable(f"Liquidity check failed ({response.status_code})")
        return LiquidityCheckResponse.model_validate({"success": False, **data})

    async def check_trustline(
        self, address: str, token: TokenRef, session_token: Optional[str] = None
    ) -> TrustlineCheckResponse:
        """Check whether ``address`` already trusts the token's issuer."""
        payload = {
            "address": address,
            "currency": token.symbol,
            "issuer": token.issuer_or_address,
        }
        try:
            response = await self.client.post(self.trustline_path, payload, token=session_token)
        except httpx.HTTPError as e:
            logger.warning(f"Trustline check failed for {token}: {e}")
            return TrustlineCheckResponse(success=False, error=str(e))

        if response.status_code in (401, 403):
            raise SessionExpired()
        data = parse_json(response)
        return TrustlineCheckResponse.model_validate({"success": False, **data})

    async def search_tokens(self, query: str) -> list[TokenInfo]:
        return await self._get_token_list("/api/xrpl/tokens/search", params={"q": query})
