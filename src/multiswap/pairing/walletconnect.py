"""WalletConnect v2 pairing channel.

The SignClient itself (relay connection, crypto, session storage) is an
external collaborator; this module only drives the handshake and one
signing request per swap.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Optional

from multiswap.chains import ChainKind
from multiswap.contracts import UnsignedTransaction
from multiswap.errors import BackendExecutionError, SigningRejected
from multiswap.pairing.base import PairingChannel
from multiswap.wallets.base import WalletConnection

logger = logging.getLogger(__name__)

SOLANA_MAINNET = "solana:5eykt4UsFv8P8NJdTREpY1vzqKqZKvdp"

# WalletConnect / JSON-RPC codes meaning the user declined
USER_REJECTED_CODES = {4001, 5000}


class WalletConnectError(Exception):
    """Error returned by the wallet over the relay."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


class SignClient(ABC):
    """Minimal WalletConnect SignClient surface."""

    @abstractmethod
    async def connect(self, required_namespaces: dict) -> tuple[str, Awaitable[dict]]:
        """Create a pairing.

        Returns:
            (uri, approval) where awaiting ``approval`` yields the session
            (a dict with at least ``topic``)
        """
        pass

    @abstractmethod
    async def request(self, topic: str, chain_id: str, method: str, params: Any) -> Any:
        """Send one JSON-RPC request to the wallet and await its answer."""
        pass

    @abstractmethod
    async def disconnect(self, topic: str, reason: str = "USER_DISCONNECTED") -> None:
        pass


def caip_chain(chain: ChainKind, evm_chain_id: Optional[int] = None) -> str:
    """CAIP-2 chain id used in WalletConnect namespaces."""
    if chain is ChainKind.XRPL:
        return "xrpl:1"
    if chain is ChainKind.EVM:
        return f"eip155:{evm_chain_id or 1}"
    return SOLANA_MAINNET


def required_namespaces(chain: ChainKind, evm_chain_id: Optional[int] = None) -> dict:
    """Namespaces requested when pairing a new session."""
    caip = caip_chain(chain, evm_chain_id)
    if chain is ChainKind.XRPL:
        return {
            "xrpl": {
                "methods": ["xrpl_signTransaction", "xrpl_signMessage", "xrpl_getAccount"],
                "chains": [caip],
                "events": ["accountsChanged", "chainChanged"],
            }
        }
    if chain is ChainKind.EVM:
        return {
            "eip155": {
                "methods": ["eth_sendTransaction", "personal_sign"],
                "chains": [caip],
                "events": ["accountsChanged", "chainChanged"],
            }
        }
    return {
        "solana": {
            "methods": ["solana_signAndSendTransaction", "solana_signTransaction"],
            "chains": [caip],
            "events": [],
        }
    }


def signing_request(
    chain: ChainKind, address: str, transaction: Any
) -> tuple[str, Any]:
    """JSON-RPC method and params for submitting a swap transaction."""
    if chain is ChainKind.XRPL:
        return "xrpl_signTransaction", {"transaction": transaction, "address": address}
    if chain is ChainKind.EVM:
        tx = dict(transaction or {})
        tx.setdefault("from", address)
        return "eth_sendTransaction", [tx]
    return "solana_signAndSendTransaction", {"transaction": transaction, "pubkey": address}


def pairing_topic(uri: Optional[str]) -> Optional[str]:
    """Topic of a ``wc:<topic>@<version>?...`` pairing URI."""
    if not uri or not uri.startswith("wc:"):
        return None
    topic = uri[3:].split("@", 1)[0].split("?", 1)[0]
    return topic or None


def extract_tx_hash(result: Any) -> Optional[str]:
    """Pull the transaction hash out of a wallet's answer."""
    if isinstance(result, str):
        return result or None
    if isinstance(result, dict):
        for key in ("hash", "txHash", "signature", "txid"):
            if result.get(key):
                return str(result[key])
        tx_json = result.get("tx_json")
        if isinstance(tx_json, dict) and tx_json.get("hash"):
            return str(tx_json["hash"])
    return None


class WalletConnectChannel(PairingChannel):
    """Remote signing over a WalletConnect session."""

    def __init__(self, client: SignClient, evm_chain_id: Optional[int] = None):
        self.client = client
        self.evm_chain_id = evm_chain_id
        self.topic: Optional[str] = None
        self._approval: Optional[Awaitable[dict]] = None
        self._owns_session = False
        self._pairing_topic: Optional[str] = None
        self._connection: Optional[WalletConnection] = None
        self._transaction: Any = None

    async def open(
        self, connection: WalletConnection, descriptor: UnsignedTransaction
    ) -> Optional[str]:
        self._connection = connection
        self._transaction = descriptor.transaction

        if connection.session_topic:
            self.topic = connection.session_topic
            logger.info(f"Reusing WalletConnect session {self.topic[:8]}...")
            return None

        uri, approval = await self.client.connect(
            required_namespaces(connection.chain, connection.chain_id or self.evm_chain_id)
        )
        self._approval = approval
        self._owns_session = True
        self._pairing_topic = pairing_topic(uri)
        logger.info(f"WalletConnect pairing created for {connection.describe()}")
        return uri

    async def wait_for_signature(self) -> str:
        if self._connection is None:
            raise RuntimeError("Channel not opened")

        try:
            if self.topic is None:
                session = await self._approval
                self.topic = session["topic"]
                logger.info(f"WalletConnect session approved: {self.topic[:8]}...")

            chain = self._connection.chain
            method, params = signing_request(chain, self._connection.address, self._transaction)
            result = await self.client.request(
                self.topic,
                caip_chain(chain, self._connection.chain_id or self.evm_chain_id),
                method,
                params,
            )
        except WalletConnectError as e:
            if e.code in USER_REJECTED_CODES:
                raise SigningRejected("Transaction was rejected in the wallet") from e
            raise BackendExecutionError(f"Wallet error: {e}") from e

        tx_hash = extract_tx_hash(result)
        if not tx_hash:
            raise BackendExecutionError("Wallet answered without a transaction hash")
        return tx_hash

    async def close(self) -> None:
        approval, self._approval = self._approval, None
        if inspect.iscoroutine(approval):
            approval.close()
        elif isinstance(approval, asyncio.Future) and not approval.done():
            approval.cancel()

        # Unapproved proposals are dropped through their pairing topic
        topic = self.topic or self._pairing_topic
        if self._owns_session and topic:
            self.topic = None
            try:
                await self.client.disconnect(topic)
            except (WalletConnectError, ConnectionError) as e:
                logger.warning(f"WalletConnect disconnect failed: {e}")
        self._owns_session = False
        self._pairing_topic = None
