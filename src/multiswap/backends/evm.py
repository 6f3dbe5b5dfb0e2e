"""EVM swap backend (Ethereum and compatible chains).

The backend proxies a DEX aggregator. ERC-20 inputs may need an approval
transaction before the swap can be sent from an external wallet.
"""

import logging
from typing import Optional

import httpx

from multiswap.backends.base import ChainBackend
from multiswap.backends.http import parse_json
from multiswap.chains import ChainKind
from multiswap.contracts import AllowanceCheckResponse, QuoteRequest, QuoteResponse, TokenInfo
from multiswap.errors import BackendExecutionError
from multiswap.quotes.base import Quote
from multiswap.tokens.base import TokenRef

logger = logging.getLogger(__name__)


class EVMBackend(ChainBackend):
    """Swap endpoints for the configured EVM chain."""

    chain = ChainKind.EVM
    quote_path = "/api/evm/swap/quote"
    execute_path = "/api/evm/swap/execute"
    prepare_path = "/api/evm/swap/transaction"
    allowance_path = "/api/evm/swap/allowance"

    @property
    def chain_id(self) -> int:
        return self.config.chain_id or 1

    def _address(self, token: TokenRef) -> str:
        return token.issuer_or_address or self.config.native_address

    def quote_payload(self, request: QuoteRequest) -> dict:
        return {
            "fromTokenAddress": self._address(request.from_token),
            "toTokenAddress": self._address(request.to_token),
            "amount": str(request.amount),
            "chainId": self.chain_id,
            "slippage": float(request.slippage),
        }

    def parse_quote(self, request: QuoteRequest, data: dict) -> QuoteResponse:
        parsed = QuoteResponse.model_validate(data)
        # Aggregator passthrough reports the output in wei-style base units
        if parsed.expected_output is None and data.get("buyAmount") is not None:
            expected = request.to_token.from_base_units(data["buyAmount"])
            parsed = parsed.model_copy(update={"expected_output": expected})
        return parsed

    def execute_payload(self, quote: Quote, address: str) -> dict:
        return {
            "fromTokenAddress": self._address(quote.from_token),
            "toTokenAddress": self._address(quote.to_token),
            "amount": str(quote.input_amount),
            "chainId": self.chain_id,
            "slippage": float(quote.slippage_percent_used),
            "walletAddress": address,
        }

    def prepare_payload(self, quote: Quote, address: str, wallet_type: str) -> dict:
        return {
            **self.execute_payload(quote, address),
            "takerAddress": address,
            "walletType": wallet_type,
        }

    def balance_path(self, address: str, token: TokenRef) -> tuple[str, Optional[dict]]:
        params = None if token.is_native else {"token": token.issuer_or_address}
        return f"/api/evm/balance/{self.chain_id}/{address}", params

    async def check_allowance(self, quote: Quote, owner: str) -> AllowanceCheckResponse:
        """Check whether the router may spend the input token.

        Native inputs never need approval.

        Raises:
            BackendExecutionError: The check could not be performed
        """
        if quote.from_token.is_native:
            return AllowanceCheckResponse(success=True)

        payload = {
            "tokenAddress": quote.from_token.issuer_or_address,
            "owner": owner,
            "amount": str(quote.input_amount),
            "chainId": self.chain_id,
        }
        try:
            response = await self.client.post(self.allowance_path, payload)
        except httpx.HTTPError as e:
            raise BackendExecutionError(f"Approval check failed: {e}") from e

        data = parse_json(response)
        if response.status_code >= 400 or not data.get("success", False):
            raise BackendExecutionError(
                data.get("error") or f"Approval check failed ({response.status_code})"
            )
        return AllowanceCheckResponse.model_validate(data)

    async def search_tokens(self, query: str) -> list[TokenInfo]:
        tokens = await self._get_token_list(f"/api/tokens/evm/{self.chain_id}")
        query = query.lower()
        return [
            t for t in tokens
            if query in t.symbol.lower() or query == t.issuer.lower() or query in (t.name or "").lower()
        ]
