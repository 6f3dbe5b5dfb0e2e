"""Base classes for the per-chain backend adapters."""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

import httpx
from pydantic import ValidationError

from multiswap.backends.http import BackendClient, parse_json
from multiswap.chains import ChainConfig, ChainKind
from multiswap.contracts import (
    BalanceResponse,
    ExecuteResponse,
    QuoteRequest,
    QuoteResponse,
    TokenInfo,
    UnsignedTransaction,
)
from multiswap.errors import (
    BackendExecutionError,
    InsufficientLiquidity,
    QuoteUnavailable,
    SessionExpired,
    SwapError,
)
from multiswap.quotes.base import Quote
from multiswap.tokens.base import TokenRef

logger = logging.getLogger(__name__)

# Backend error codes that mean the pool can't fill the order
LIQUIDITY_ERROR_CODES = {"NO_LIQUIDITY", "INSUFFICIENT_LIQUIDITY", "NO_ROUTE"}


def is_liquidity_failure(message: Optional[str], code: Optional[str] = None) -> bool:
    if code and code.upper() in LIQUIDITY_ERROR_CODES:
        return True
    return bool(message) and "liquidity" in message.lower()


def failure_from(
    data: dict,
    default: type[SwapError],
    fallback_message: str,
) -> SwapError:
    """Pick the error for a failed backend response, keeping its message verbatim."""
    message = data.get("error") or data.get("message") or fallback_message
    code = data.get("errorCode") or data.get("code")
    if is_liquidity_failure(message, str(code) if code else None):
        return InsufficientLiquidity(message)
    return default(message)


class ChainBackend(ABC):
    """HTTP adapter for one chain's swap endpoints.

    Subclasses describe the chain's payload shapes; request/response
    handling and error mapping are shared here.
    """

    chain: ChainKind
    quote_path: str
    execute_path: str
    prepare_path: str

    def __init__(self, client: BackendClient, config: ChainConfig):
        self.client = client
        self.config = config

    @property
    def name(self) -> str:
        return self.config.name

    # ======================
    # Payload shapes
    # ======================

    @abstractmethod
    def quote_payload(self, request: QuoteRequest) -> dict:
        """Body of the quote request."""
        pass

    @abstractmethod
    def execute_payload(self, quote: Quote, address: str) -> dict:
        """Body of the custodial execute request."""
        pass

    @abstractmethod
    def prepare_payload(self, quote: Quote, address: str, wallet_type: str) -> dict:
        """Body of the unsigned-transaction request."""
        pass

    @abstractmethod
    def balance_path(self, address: str, token: TokenRef) -> tuple[str, Optional[dict]]:
        """Path and query params of the balance endpoint."""
        pass

    def parse_quote(self, request: QuoteRequest, data: dict) -> QuoteResponse:
        return QuoteResponse.model_validate(data)

    # ======================
    # Requests
    # ======================

    async def fetch_quote(self, request: QuoteRequest, token: Optional[str] = None) -> QuoteResponse:
        """Ask the backend to price a swap.

        Raises:
            QuoteUnavailable: Transport failure, non-2xx or success:false
            InsufficientLiquidity: The backend reports no route/liquidity
        """
        try:
            response = await self.client.post(self.quote_path, self.quote_payload(request), token=token)
        except httpx.HTTPError as e:
            logger.error(f"{self.name} quote request failed: {e}")
            raise QuoteUnavailable(f"Quote service unreachable: {e}") from e

        data = parse_json(response)
        if response.status_code >= 400 or not data.get("success", False):
            logger.warning(
                f"{self.name} quote failed ({response.status_code}): {data.get('error')}"
            )
            raise failure_from(
                data, QuoteUnavailable, f"Quote failed ({response.status_code})"
            )

        try:
            parsed = self.parse_quote(request, data)
        except (ValidationError, ValueError, ArithmeticError) as e:
            raise QuoteUnavailable(f"Malformed quote response: {e}") from e

        if parsed.has_liquidity is False:
            raise InsufficientLiquidity(parsed.error or "Not enough liquidity available for this swap")
        return parsed

    async def execute(self, quote: Quote, address: str, token: str) -> ExecuteResponse:
        """Run a custodial swap for the embedded wallet.

        Raises:
            SessionExpired: 401/403 from the backend
            BackendExecutionError: Any other failure or a missing tx hash
            InsufficientLiquidity: Liquidity failure reported at execution time
        """
        try:
            response = await self.client.post(
                self.execute_path, self.execute_payload(quote, address), token=token
            )
        except httpx.HTTPError as e:
            logger.error(f"{self.name} execute request failed: {e}")
            raise BackendExecutionError(f"Swap service unreachable: {e}") from e

        if response.status_code in (401, 403):
            raise SessionExpired()

        data = parse_json(response)
        if response.status_code >= 400 or not data.get("success", False):
            logger.warning(
                f"{self.name} execute failed ({response.status_code}): {data.get('error')}"
            )
            raise failure_from(
                data, BackendExecutionError, f"Swap failed ({response.status_code})"
            )

        result = ExecuteResponse.model_validate(data)
        if not result.tx_hash:
            raise BackendExecutionError("Swap reported success without a transaction hash")
        return result

    async def prepare_transaction(
        self,
        quote: Quote,
        address: str,
        wallet_type: str = "",
        token: Optional[str] = None,
    ) -> UnsignedTransaction:
        """Fetch the unsigned transaction (or remote-signing payload) for a swap."""
        try:
            response = await self.client.post(
                self.prepare_path, self.prepare_payload(quote, address, wallet_type), token=token
            )
        except httpx.HTTPError as e:
            logger.error(f"{self.name} prepare request failed: {e}")
            raise BackendExecutionError(f"Swap service unreachable: {e}") from e

        if response.status_code in (401, 403):
            raise SessionExpired()

        data = parse_json(response)
        if response.status_code >= 400 or not data.get("success", False):
            raise failure_from(
                data,
                BackendExecutionError,
                f"Could not build transaction ({response.status_code})",
            )
        return UnsignedTransaction.model_validate(data)

    async def fetch_balance(self, address: str, token: TokenRef) -> Decimal:
        """Read one balance.

        Raises:
            httpx.HTTPError: Transport failure
            BackendExecutionError: The backend could not read the balance
        """
        path, params = self.balance_path(address, token)
        response = await self.client.get(path, params=params)
        data = parse_json(response)
        if response.status_code >= 400:
            raise BackendExecutionError(
                data.get("error") or f"Balance request failed ({response.status_code})"
            )
        parsed = BalanceResponse.model_validate(data)
        if not parsed.success or parsed.balance is None:
            raise BackendExecutionError(parsed.error or "Balance unavailable")
        return parsed.balance

    async def search_tokens(self, query: str) -> list[TokenInfo]:
        """Search the chain's token list. Empty when the chain has no search."""
        return []

    async def token_info(self, address: str) -> Optional[TokenInfo]:
        """Look up one token by issuer/contract/mint address."""
        return None

    async def _get_token_list(self, path: str, params: Optional[dict] = None) -> list[TokenInfo]:
        try:
            response = await self.client.get(path, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"{self.name} token lookup failed: {e}")
            return []
        if response.status_code >= 400:
            logger.warning(f"{self.name} token lookup returned {response.status_code}")
            return []

        try:
            data = response.json()
        except ValueError:
            return []
        if isinstance(data, dict):
            if "symbol" in data:
                data = [data]
            elif isinstance(data.get("token"), dict):
                data = [data["token"]]
            else:
                data = data.get("tokens") or data.get("data") or []

        tokens = []
        for item in data:
            try:
                tokens.append(TokenInfo.model_validate(item))
            except ValidationError:
                logger.debug(f"Skipping malformed token entry: {item}")
        return tokens
