"""Remote signing transport interface."""

from abc import ABC, abstractmethod
from typing import Optional

from multiswap.contracts import UnsignedTransaction
from multiswap.wallets.base import WalletConnection


class PairingChannel(ABC):
    """One remote signing round-trip.

    Lifecycle: ``open`` once, ``wait_for_signature`` once, ``close`` always.
    """

    @abstractmethod
    async def open(
        self, connection: WalletConnection, descriptor: UnsignedTransaction
    ) -> Optional[str]:
        """Start the round-trip.

        Returns:
            A pairing URI the wallet must scan, or None when the request
            travels over an existing session or a backend payload
        """
        pass

    @abstractmethod
    async def wait_for_signature(self) -> str:
        """Suspend until the wallet answers.

        Returns:
            Transaction hash

        Raises:
            SigningRejected: The user declined in the wallet
            RemotePairingTimeout: The request expired on the wallet side
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the channel. Safe to call more than once."""
        pass
