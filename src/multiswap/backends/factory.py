"""Factory for the per-chain backend adapters."""

import logging
from typing import Optional

from multiswap.backends.base import ChainBackend
from multiswap.backends.evm import EVMBackend
from multiswap.backends.http import BackendClient
from multiswap.backends.solana import SolanaBackend
from multiswap.backends.xrpl import XRPLBackend
from multiswap.chains import ChainKind, get_chain_config
from multiswap.config import Settings, get_settings

logger = logging.getLogger(__name__)

BACKENDS: dict[ChainKind, type[ChainBackend]] = {
    ChainKind.XRPL: XRPLBackend,
    ChainKind.EVM: EVMBackend,
    ChainKind.SOLANA: SolanaBackend,
}


def create_chain_backend(
    chain: ChainKind,
    client: Optional[BackendClient] = None,
    settings: Optional[Settings] = None,
) -> ChainBackend:
    """Create the backend adapter for a chain.

    Args:
        chain: Network family
        client: Shared HTTP client (a new one is created when omitted)
        settings: Settings override
    """
    settings = settings or get_settings()
    chain = ChainKind(chain)
    config = get_chain_config(chain, settings)
    client = client or BackendClient(settings=settings)

    backend = BACKENDS[chain](client, config)
    logger.debug(f"Created {backend.name} backend at {client.base_url}")
    return backend
