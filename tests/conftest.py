"""Pytest configuration and fixtures."""

import json
import os
from decimal import Decimal
from typing import Any, Callable, Optional, Union

import httpx
import pytest
import pytest_asyncio

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["BACKEND_BASE_URL"] = "http://backend.test"

from multiswap.backends.factory import create_chain_backend
from multiswap.backends.http import BackendClient
from multiswap.chains import ChainKind
from multiswap.config import Settings
from multiswap.quotes.base import Quote
from multiswap.tokens.base import TokenRef

XRPL_ADDRESS = "rHb9CJAWyB4rj91VRWn96DkukG4bwdtyTh"
XRPL_ADDRESS_2 = "rMxCKbEDwqr76QuheSUMdEGf4B9xJ8m5De"
RLUSD_ISSUER = "rMxCKbEDwqr76QuheSUMdEGf4B9xJ8m5De"
EVM_ADDRESS = "0x742d35Cc6634C0532925a3b844Bc454e4438f44e"
USDC_EVM = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
SOLANA_ADDRESS = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

Route = Union[tuple[int, Any], Callable[[httpx.Request], httpx.Response]]


def make_quote(from_token, to_token, amount="10", expected="100", minimum="99", slippage="1") -> Quote:
    """A confirmed quote with explicit figures."""
    return Quote(
        from_token=from_token,
        to_token=to_token,
        input_amount=Decimal(amount),
        expected_output=Decimal(expected),
        minimum_output=Decimal(minimum),
        rate=Decimal(expected) / Decimal(amount),
        slippage_percent_used=Decimal(slippage),
    )


class FakeBackendAPI:
    """Programmable stand-in for the swap backend, used as an httpx.MockTransport handler."""

    def __init__(self):
        self.routes: dict[tuple[str, str], Route] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, body: Any = None, status: int = 200, handler=None) -> None:
        self.routes[(method.upper(), path)] = handler if handler is not None else (status, body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"success": False, "error": "Not found"})
        if callable(route):
            return route(request)
        status, body = route
        return httpx.Response(status, json=body)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def last_json(self, path: str) -> Optional[dict]:
        calls = self.calls(path)
        return json.loads(calls[-1].content) if calls else None


@pytest.fixture
def settings() -> Settings:
    """Settings with every timer shrunk for fast tests."""
    return Settings(
        backend_base_url="http://backend.test",
        quote_debounce_ms=0,
        balance_poll_interval_seconds=0.01,
        balance_poll_attempts=5,
        pairing_poll_base_seconds=0.01,
        pairing_poll_cap_seconds=0.02,
        remote_signing_timeout_seconds=5,
        walletconnect_project_id="",
        coingecko_api_key="",
    )


@pytest.fixture
def api() -> FakeBackendAPI:
    return FakeBackendAPI()


@pytest_asyncio.fixture
async def http_client(api, settings):
    client = BackendClient(settings=settings, transport=httpx.MockTransport(api))
    yield client
    await client.close()


@pytest.fixture
def xrpl_backend(http_client, settings):
    return create_chain_backend(ChainKind.XRPL, http_client, settings)


@pytest.fixture
def evm_backend(http_client, settings):
    return create_chain_backend(ChainKind.EVM, http_client, settings)


@pytest.fixture
def solana_backend(http_client, settings):
    return create_chain_backend(ChainKind.SOLANA, http_client, settings)


@pytest.fixture
def xrp() -> TokenRef:
    return TokenRef(symbol="XRP", chain=ChainKind.XRPL, decimals=6)


@pytest.fixture
def rlusd() -> TokenRef:
    return TokenRef(symbol="RLUSD", chain=ChainKind.XRPL, issuer_or_address=RLUSD_ISSUER, decimals=6)


@pytest.fixture
def eth() -> TokenRef:
    return TokenRef(symbol="ETH", chain=ChainKind.EVM, decimals=18)


@pytest.fixture
def usdc_evm() -> TokenRef:
    return TokenRef(symbol="USDC", chain=ChainKind.EVM, issuer_or_address=USDC_EVM, decimals=6)


@pytest.fixture
def sol() -> TokenRef:
    return TokenRef(symbol="SOL", chain=ChainKind.SOLANA, decimals=9)


@pytest.fixture
def usdc_sol() -> TokenRef:
    return TokenRef(
        symbol="USDC",
        chain=ChainKind.SOLANA,
        issuer_or_address=USDC_MINT,
        decimals=6,
        display_price=Decimal("1"),
    )
