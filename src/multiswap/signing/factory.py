"""Signing router factory.

Builds the signers that the current environment can support: embedded
always, injected when extension providers are given, remote always (payload
polling) with WalletConnect when a SignClient is given.
"""

import logging
from typing import Optional

from multiswap.backends.base import ChainBackend
from multiswap.backends.http import BackendClient
from multiswap.chains import ChainKind
from multiswap.config import Settings, get_settings
from multiswap.contracts import UnsignedTransaction
from multiswap.errors import UnsupportedSigningMethod
from multiswap.pairing.base import PairingChannel
from multiswap.pairing.deeplink import DeeplinkQRGenerator
from multiswap.pairing.payload import PayloadPollingChannel
from multiswap.pairing.walletconnect import SignClient, WalletConnectChannel
from multiswap.signing.base import SigningBackend
from multiswap.signing.embedded import EmbeddedSigner
from multiswap.signing.injected import InjectedProvider, InjectedSigner
from multiswap.signing.remote import PromptCallback, RemoteSigner
from multiswap.signing.router import SigningRouter
from multiswap.wallets.auth import SessionTokenSource
from multiswap.wallets.base import WalletConnection

logger = logging.getLogger(__name__)


def create_channel_factory(
    client: BackendClient,
    sign_client: Optional[SignClient] = None,
    settings: Optional[Settings] = None,
):
    """Pick the pairing channel for each remote signing request.

    Backend payloads (a uuid without the WalletConnect flag) are polled;
    everything else goes over WalletConnect.
    """
    settings = settings or get_settings()

    def factory(connection: WalletConnection, descriptor: UnsignedTransaction) -> PairingChannel:
        if descriptor.is_payload:
            return PayloadPollingChannel(client, settings)
        if sign_client is None:
            raise UnsupportedSigningMethod("WalletConnect is not configured")
        return WalletConnectChannel(sign_client, evm_chain_id=settings.evm_chain_id)

    return factory


def create_signing_router(
    backends: dict[ChainKind, ChainBackend],
    client: BackendClient,
    token_source: Optional[SessionTokenSource] = None,
    providers: Optional[dict[ChainKind, InjectedProvider]] = None,
    sign_client: Optional[SignClient] = None,
    on_prompt: Optional[PromptCallback] = None,
    settings: Optional[Settings] = None,
) -> SigningRouter:
    """Create a SigningRouter with every signer the environment supports."""
    settings = settings or get_settings()
    timeout = settings.remote_signing_timeout_seconds

    signers: list[SigningBackend] = [EmbeddedSigner(backends, token_source)]
    if providers:
        signers.append(InjectedSigner(backends, providers, token_source))
    signers.append(
        RemoteSigner(
            backends,
            create_channel_factory(client, sign_client, settings),
            generator=DeeplinkQRGenerator(expires_in_seconds=timeout),
            timeout_seconds=timeout,
            token_source=token_source,
            on_prompt=on_prompt,
        )
    )

    logger.debug(f"Signing router methods: {[s.method.value for s in signers]}")
    return SigningRouter(signers)
