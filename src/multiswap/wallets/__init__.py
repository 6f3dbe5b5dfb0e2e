"""Wallet connections, selection and resolution."""

from multiswap.wallets.auth import CallbackTokenSource, SessionTokenSource, StaticTokenSource
from multiswap.wallets.base import SigningMethod, WalletConnection
from multiswap.wallets.registry import WalletRegistry, WalletSelection
from multiswap.wallets.resolver import WalletSessionResolver

__all__ = [
    "CallbackTokenSource",
    "SessionTokenSource",
    "SigningMethod",
    "StaticTokenSource",
    "WalletConnection",
    "WalletRegistry",
    "WalletSelection",
    "WalletSessionResolver",
]
