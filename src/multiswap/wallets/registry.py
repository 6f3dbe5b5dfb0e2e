"""In-session wallet registry.

Holds the connected wallets and the per-chain selection. Nothing is
persisted; a new registry starts empty.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from multiswap.chains import ChainKind
from multiswap.wallets.base import SigningMethod, WalletConnection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalletSelection:
    """The user's choice for a chain: one exact connection or a wallet type."""

    wallet_id: Optional[str] = None
    wallet_type: Optional[str] = None


class WalletRegistry:
    """Connected wallets, keyed by wallet_id.

    SECURITY: only public addresses are stored.
    """

    def __init__(self):
        self._connections: dict[str, WalletConnection] = {}
        self._selections: dict[ChainKind, WalletSelection] = {}

    def _log_security_event(self, event: str, address: str) -> None:
        """Log security-relevant events."""
        logger.info(
            "WALLET_SECURITY: %s | Address: %s",
            event,
            address[:10] + "..." if len(address) > 10 else address,
        )

    def connect(
        self,
        chain: ChainKind,
        address: str,
        signing_method: SigningMethod,
        wallet_type: str,
        **extra,
    ) -> WalletConnection:
        """Register a connected wallet.

        Reconnecting the same (chain, address, wallet type) replaces the old
        connection.

        Raises:
            ValueError: Invalid address or key material instead of an address
        """
        self._log_security_event("CONNECT_REQUEST", address)
        try:
            connection = WalletConnection(
                chain=chain,
                address=address,
                signing_method=signing_method,
                wallet_type=wallet_type.lower(),
                **extra,
            )
        except ValueError as e:
            self._log_security_event("CONNECT_REJECTED", address)
            raise ValueError(str(e)) from e

        for existing in self.connections(connection.chain):
            if (
                existing.address == connection.address
                and existing.wallet_type == connection.wallet_type
            ):
                self._remove(existing.wallet_id)

        self._connections[connection.wallet_id] = connection
        self._log_security_event("CONNECT_SUCCESS", address)
        logger.info(
            "Wallet connected: %s (type=%s, chain=%s, method=%s)",
            connection.short_address,
            connection.wallet_type,
            connection.chain.value,
            connection.signing_method.value,
        )
        return connection

    def add(self, connection: WalletConnection) -> WalletConnection:
        """Register an already-built connection."""
        self._connections[connection.wallet_id] = connection
        self._log_security_event("CONNECT_SUCCESS", connection.address)
        return connection

    def _remove(self, wallet_id: str) -> Optional[WalletConnection]:
        connection = self._connections.pop(wallet_id, None)
        if connection is None:
            return None
        selection = self._selections.get(connection.chain)
        if selection and selection.wallet_id == wallet_id:
            del self._selections[connection.chain]
        return connection

    def disconnect(self, wallet_id: str) -> bool:
        """Disconnect a wallet. Its selection, if any, is cleared.

        Returns:
            True if disconnected, False if not found
        """
        connection = self._remove(wallet_id)
        if connection is None:
            return False
        self._log_security_event("DISCONNECT_SUCCESS", connection.address)
        return True

    def get(self, wallet_id: str) -> Optional[WalletConnection]:
        return self._connections.get(wallet_id)

    def connections(self, chain: Optional[ChainKind] = None) -> list[WalletConnection]:
        """Connections in connection order, optionally for one chain."""
        items = sorted(self._connections.values(), key=lambda c: c.connected_at)
        if chain is None:
            return items
        return [c for c in items if c.chain == chain]

    def select_connection(self, wallet_id: str) -> WalletConnection:
        """Select one exact connection for its chain.

        Raises:
            KeyError: Unknown wallet_id
        """
        connection = self._connections[wallet_id]
        self._selections[connection.chain] = WalletSelection(wallet_id=wallet_id)
        logger.info(f"Selected {connection.describe()} for {connection.chain.value}")
        return connection

    def select_wallet_type(self, chain: ChainKind, wallet_type: str) -> None:
        """Select a wallet product (e.g. "xaman") for a chain."""
        self._selections[ChainKind(chain)] = WalletSelection(wallet_type=wallet_type.lower())
        logger.info(f"Selected wallet type {wallet_type} for {chain}")

    def clear_selection(self, chain: ChainKind) -> None:
        self._selections.pop(ChainKind(chain), None)

    def selection(self, chain: ChainKind) -> Optional[WalletSelection]:
        return self._selections.get(ChainKind(chain))
