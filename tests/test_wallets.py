"""Tests for wallet connections, the registry and session resolution."""

import pytest

from multiswap.chains import ChainKind
from multiswap.errors import AmbiguousWalletSelection, NoWalletSelected
from multiswap.wallets import (
    CallbackTokenSource,
    SigningMethod,
    StaticTokenSource,
    WalletConnection,
    WalletRegistry,
    WalletSessionResolver,
)

from conftest import EVM_ADDRESS, SOLANA_ADDRESS, XRPL_ADDRESS, XRPL_ADDRESS_2


@pytest.fixture
def registry():
    return WalletRegistry()


@pytest.fixture
def resolver(registry):
    return WalletSessionResolver(registry)


class TestWalletConnection:
    """Tests for connection validation."""

    def test_valid_addresses(self):
        WalletConnection(
            chain=ChainKind.XRPL, address=XRPL_ADDRESS,
            signing_method=SigningMethod.EMBEDDED, wallet_type="riddle",
        )
        WalletConnection(
            chain=ChainKind.EVM, address=EVM_ADDRESS,
            signing_method=SigningMethod.INJECTED, wallet_type="metamask",
        )
        WalletConnection(
            chain=ChainKind.SOLANA, address=SOLANA_ADDRESS,
            signing_method=SigningMethod.INJECTED, wallet_type="phantom",
        )

    def test_hex_private_key_rejected(self):
        with pytest.raises(ValueError, match="Private keys"):
            WalletConnection(
                chain=ChainKind.EVM,
                address="0x" + "ab" * 32,
                signing_method=SigningMethod.INJECTED,
                wallet_type="metamask",
            )

    def test_xrpl_seed_rejected(self):
        with pytest.raises(ValueError, match="Private keys"):
            WalletConnection(
                chain=ChainKind.XRPL,
                address="sEdTM1uX8pu2do5XvTnutH6HsouMaM2",
                signing_method=SigningMethod.REMOTE,
                wallet_type="xaman",
            )

    def test_address_must_fit_chain(self):
        with pytest.raises(ValueError, match="Invalid evm address"):
            WalletConnection(
                chain=ChainKind.EVM,
                address=XRPL_ADDRESS,
                signing_method=SigningMethod.INJECTED,
                wallet_type="metamask",
            )


class TestWalletRegistry:
    """Tests for WalletRegistry."""

    def test_connect_and_disconnect(self, registry):
        conn = registry.connect(ChainKind.EVM, EVM_ADDRESS, SigningMethod.INJECTED, "MetaMask")

        assert conn.wallet_type == "metamask"
        assert registry.connections(ChainKind.EVM) == [conn]
        assert registry.disconnect(conn.wallet_id) is True
        assert registry.disconnect(conn.wallet_id) is False
        assert registry.connections() == []

    def test_reconnect_replaces(self, registry):
        first = registry.connect(ChainKind.XRPL, XRPL_ADDRESS, SigningMethod.REMOTE, "xaman")
        second = registry.connect(ChainKind.XRPL, XRPL_ADDRESS, SigningMethod.REMOTE, "xaman")

        assert registry.get(first.wallet_id) is None
        assert registry.connections(ChainKind.XRPL) == [second]

    def test_disconnect_clears_selection(self, registry):
        conn = registry.connect(ChainKind.XRPL, XRPL_ADDRESS, SigningMethod.REMOTE, "xaman")
        registry.select_connection(conn.wallet_id)

        registry.disconnect(conn.wallet_id)

        assert registry.selection(ChainKind.XRPL) is None

    def test_rejected_connect_raises(self, registry):
        with pytest.raises(ValueError):
            registry.connect(ChainKind.EVM, "not-an-address", SigningMethod.INJECTED, "metamask")
        assert registry.connections() == []


class TestWalletSessionResolver:
    """Tests for WalletSessionResolver."""

    def test_nothing_connected(self, resolver):
        with pytest.raises(NoWalletSelected):
            resolver.resolve(ChainKind.EVM)

    def test_explicit_connection_wins(self, registry, resolver):
        registry.connect(ChainKind.XRPL, XRPL_ADDRESS, SigningMethod.EMBEDDED, "riddle")
        xaman = registry.connect(ChainKind.XRPL, XRPL_ADDRESS_2, SigningMethod.REMOTE, "xaman")
        registry.select_connection(xaman.wallet_id)

        assert resolver.resolve(ChainKind.XRPL) == xaman

    def test_lone_embedded_is_authoritative_on_xrpl(self, registry, resolver):
        embedded = registry.connect(ChainKind.XRPL, XRPL_ADDRESS, SigningMethod.EMBEDDED, "riddle")
        registry.connect(ChainKind.XRPL, XRPL_ADDRESS_2, SigningMethod.REMOTE, "xaman")

        assert resolver.resolve(ChainKind.XRPL) == embedded

    def test_two_embedded_is_ambiguous(self, registry, resolver):
        registry.connect(ChainKind.XRPL, XRPL_ADDRESS, SigningMethod.EMBEDDED, "riddle")
        registry.connect(ChainKind.XRPL, XRPL_ADDRESS_2, SigningMethod.EMBEDDED, "riddle")

        with pytest.raises(AmbiguousWalletSelection) as exc_info:
            resolver.resolve(ChainKind.XRPL)

        assert len(exc_info.value.candidates) == 2

    def test_wallet_type_matching_two_connections_is_ambiguous(self, registry, resolver):
        """Two Xaman accounts and a selection of "xaman" must not pick the first one."""
        registry.connect(ChainKind.XRPL, XRPL_ADDRESS, SigningMethod.REMOTE, "xaman")
        registry.connect(ChainKind.XRPL, XRPL_ADDRESS_2, SigningMethod.REMOTE, "xaman")
        registry.select_wallet_type(ChainKind.XRPL, "xaman")

        with pytest.raises(AmbiguousWalletSelection) as exc_info:
            resolver.resolve(ChainKind.XRPL)

        assert {c.address for c in exc_info.value.candidates} == {XRPL_ADDRESS, XRPL_ADDRESS_2}

    def test_wallet_type_single_match(self, registry, resolver):
        registry.connect(ChainKind.XRPL, XRPL_ADDRESS, SigningMethod.EMBEDDED, "riddle")
        joey = registry.connect(ChainKind.XRPL, XRPL_ADDRESS_2, SigningMethod.REMOTE, "joey")
        registry.select_wallet_type(ChainKind.XRPL, "Joey")

        assert resolver.resolve(ChainKind.XRPL) == joey

    def test_wallet_type_without_match(self, registry, resolver):
        registry.connect(ChainKind.XRPL, XRPL_ADDRESS, SigningMethod.EMBEDDED, "riddle")
        registry.select_wallet_type(ChainKind.XRPL, "xaman")

        with pytest.raises(NoWalletSelected):
            resolver.resolve(ChainKind.XRPL)

    def test_evm_requires_explicit_choice(self, registry, resolver):
        """Outside XRPL a single connection is not picked implicitly."""
        conn = registry.connect(ChainKind.EVM, EVM_ADDRESS, SigningMethod.INJECTED, "metamask")

        with pytest.raises(NoWalletSelected) as exc_info:
            resolver.resolve(ChainKind.EVM)

        assert exc_info.value.candidates == [conn]

    def test_stale_selection_cleared(self, registry, resolver):
        conn = registry.connect(ChainKind.SOLANA, SOLANA_ADDRESS, SigningMethod.INJECTED, "phantom")
        registry.select_connection(conn.wallet_id)
        registry._connections.pop(conn.wallet_id)

        with pytest.raises(NoWalletSelected):
            resolver.resolve(ChainKind.SOLANA)
        assert registry.selection(ChainKind.SOLANA) is None


class TestTokenSources:
    """Tests for session token sources."""

    @pytest.mark.asyncio
    async def test_static_token_is_read_fresh(self):
        source = StaticTokenSource("a")
        assert await source.get_token() == "a"
        source.token = "b"
        assert await source.get_token() == "b"

    @pytest.mark.asyncio
    async def test_async_callback(self):
        async def read_token():
            return "async-token"

        assert await CallbackTokenSource(read_token).get_token() == "async-token"
