"""Swap signing: embedded, injected and remote signers behind one router."""

from multiswap.signing.base import SigningBackend, SigningResult, SigningStage
from multiswap.signing.embedded import EmbeddedSigner
from multiswap.signing.factory import create_signing_router
from multiswap.signing.injected import InjectedProvider, InjectedSigner, ProviderRpcError
from multiswap.signing.remote import RemoteSigner
from multiswap.signing.router import SigningRouter

__all__ = [
    "EmbeddedSigner",
    "InjectedProvider",
    "InjectedSigner",
    "ProviderRpcError",
    "RemoteSigner",
    "SigningBackend",
    "SigningResult",
    "SigningRouter",
    "SigningStage",
    "create_signing_router",
]
