"""Swap backend adapters.

Backends:
- XRPL: AMM/order book swaps, trustline and liquidity checks
- EVM: aggregator swaps with ERC-20 approvals
- Solana: Jupiter swaps in base units, fee in SOL
"""

from multiswap.backends.base import ChainBackend
from multiswap.backends.evm import EVMBackend
from multiswap.backends.factory import create_chain_backend
from multiswap.backends.http import BackendClient
from multiswap.backends.solana import SolanaBackend
from multiswap.backends.xrpl import XRPLBackend

__all__ = [
    "BackendClient",
    "ChainBackend",
    "EVMBackend",
    "SolanaBackend",
    "XRPLBackend",
    "create_chain_backend",
]
